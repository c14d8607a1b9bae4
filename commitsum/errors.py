"""
Error taxonomy for commit retrieval, caching and export.

Every error carries a ``user_message`` suitable for a banner; ``str()`` keeps
the technical detail for the log file.
"""

import re


class CommitSumError(Exception):
    """Base class for all application errors."""

    friendly_message: str | None = None

    def __init__(self, message: str = "", *, user_message: str | None = None):
        super().__init__(message or self.friendly_message or type(self).__name__)
        self._user_message = user_message

    @property
    def user_message(self) -> str:
        return self._user_message or self.friendly_message or str(self)


class ValidationError(CommitSumError):
    """Bad or future date input. Rendered inline next to the input."""


class RetrievalError(CommitSumError):
    """The external commit source failed."""

    def __init__(self, message: str = "", *, output: str = "", command: str = "", user_message=None):
        super().__init__(message, user_message=user_message)
        self.output = output
        self.command = command

    @property
    def user_message(self) -> str:
        return self._user_message or self.friendly_message or f"Error: {self}"


class AuthenticationError(RetrievalError):
    friendly_message = "GitHub authentication required. Run 'gh auth login' to authenticate."


class RateLimitError(RetrievalError):
    friendly_message = "GitHub API rate limit exceeded. Please wait and try again later."


class NetworkError(RetrievalError):
    friendly_message = "Network error. Please check your internet connection and try again."


class ToolMissingError(RetrievalError):
    friendly_message = (
        "GitHub CLI (gh) is not installed. Please install it from https://cli.github.com/"
    )


class ParseError(RetrievalError):
    friendly_message = "Could not understand the response from GitHub CLI."


class NotFoundError(CommitSumError):
    """Zero commits for the requested range."""

    def __init__(self, date_label: str):
        super().__init__(f"No commits found for {date_label}")
        self.date_label = date_label


class CacheError(CommitSumError):
    """Non-fatal cache failure. Callers log it and carry on."""


class ExportError(CommitSumError):
    """Writing an export file failed."""

    @property
    def user_message(self) -> str:
        return self._user_message or f"Failed to save: {self}"


class ClipboardError(CommitSumError):
    """The system clipboard rejected the copy."""

    @property
    def user_message(self) -> str:
        return self._user_message or f"Failed to copy: {self}"


# Ordered: the first matching class wins.
_CLASSIFIERS = [
    (
        AuthenticationError,
        re.compile(r"authentication|not logged in|unauthorized|gh auth login|bad credentials"),
    ),
    (RateLimitError, re.compile(r"rate limit")),
    (NetworkError, re.compile(r"network|connection|timeout|timed out|dns")),
    (ToolMissingError, re.compile(r"executable file not found|command not found")),
]


def classify_cli_error(output: str, command: str = "", returncode: int | None = None) -> RetrievalError:
    """Maps the raw failure output of the gh CLI onto the error taxonomy."""
    text = (output or "").strip()
    detail = text or f"{command or 'gh'} exited with status {returncode}"

    lowered = text.lower()
    for error_cls, pattern in _CLASSIFIERS:
        if pattern.search(lowered):
            return error_cls(detail, output=text, command=command)

    return RetrievalError(detail, output=text, command=command)


def user_message_for(error: BaseException) -> str:
    """Banner text for any exception that reaches the UI."""
    if isinstance(error, CommitSumError):
        return error.user_message
    return f"Error: {error}"
