import logging
import shutil
import subprocess
import threading
import time
from abc import ABC, abstractmethod

from commitsum.constants import GH_TIMEOUT_SECONDS, MAX_COMMITS_TO_FETCH
from commitsum.errors import NetworkError, RetrievalError, ToolMissingError, classify_cli_error

logger = logging.getLogger(__name__)


class FetchCancelled(Exception):
    """The caller abandoned the fetch while the external tool was running."""


class CommitSource(ABC):
    """Abstract base class for the external source of truth for commits."""

    def is_available(self) -> bool:
        """Whether the source can be used on this machine."""
        return True

    @abstractmethod
    def get_user(self) -> str:
        """Returns the login name of the authenticated user."""

    @abstractmethod
    def search_commits(
        self,
        author: str,
        date_query: str,
        limit: int = MAX_COMMITS_TO_FETCH,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """Returns the raw machine-readable search output."""


class GitHubCLISource(CommitSource):
    """Commit source backed by the ``gh`` command line tool."""

    POLL_INTERVAL = 0.1

    def __init__(
        self,
        executable: str = "gh",
        timeout: float = GH_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ):
        self.executable = executable
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def get_user(self) -> str:
        return self._run(["api", "user", "--jq", ".login"]).strip()

    def search_commits(self, author, date_query, limit=MAX_COMMITS_TO_FETCH, cancel_event=None):
        return self._run(
            [
                "search",
                "commits",
                "--author",
                author,
                "--committer-date",
                date_query,
                "--json",
                "repository,commit",
                "--limit",
                str(limit),
            ],
            cancel_event=cancel_event,
        )

    def _run(self, args: list[str], cancel_event: threading.Event | None = None) -> str:
        """
        Runs gh, polling so a cancel request or the timeout can kill the process.
        Failures are classified from the tool's own error output.
        """
        command = [self.executable, *args]
        command_str = " ".join(command)
        started = time.monotonic()

        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise ToolMissingError(str(e), command=command_str) from e
        except OSError as e:
            raise RetrievalError(str(e), command=command_str) from e

        deadline = started + self.timeout
        while True:
            try:
                stdout, stderr = proc.communicate(timeout=self.POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    self._kill(proc)
                    self.logger.info(f"GitHub CLI command cancelled | command={command_str}")
                    raise FetchCancelled(command_str)
                if time.monotonic() > deadline:
                    self._kill(proc)
                    raise NetworkError(
                        f"{command_str} timed out after {self.timeout:g}s", command=command_str
                    )

        duration_ms = int((time.monotonic() - started) * 1000)
        if proc.returncode != 0:
            error = classify_cli_error(stderr or stdout, command_str, proc.returncode)
            self.logger.error(
                f"GitHub CLI command failed | command={command_str} "
                f"duration_ms={duration_ms} error={error}"
            )
            raise error

        self.logger.info(
            f"GitHub CLI command executed | command={command_str} duration_ms={duration_ms}"
        )
        return stdout

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        proc.kill()
        try:
            proc.communicate(timeout=1)
        except subprocess.TimeoutExpired:
            pass


# --- The Factory ---
def get_source(name: str = "gh", logger: logging.Logger | None = None) -> CommitSource:
    """Factory for the configured commit source."""
    if name == "gh":
        return GitHubCLISource(logger=logger)
    raise ValueError(f"Unknown or unsupported commit source: '{name}'")
