import argparse
from typing import List, Optional

from rich.console import Console

from commitsum.cache import CommitsCache, FileCache
from commitsum.config import load_settings
from commitsum.constants import APP_NAME, APP_VERSION, ICON_ERROR, ICON_SUCCESS
from commitsum.core import CommitRetriever
from commitsum.errors import CacheError, ToolMissingError
from commitsum.providers import get_source
from commitsum.services.output_handler import SystemClipboard
from commitsum.session import SessionController
from commitsum.tui import TerminalUI
from commitsum.utils import debug_requested, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Summarize your GitHub commits across repositories for a date range.",
    )
    parser.add_argument("--debug", action="store_true", help="Write verbose debug logs.")
    parser.add_argument(
        "--clear-cache", action="store_true", help="Delete all cached results and exit."
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


class App:
    def __init__(self, debug: bool = False):
        self.logger = setup_logging(debug=debug)
        self.console = Console()
        self.settings = load_settings()

    def _build_cache(self) -> Optional[CommitsCache]:
        try:
            return CommitsCache(FileCache(logger=self.logger), logger=self.logger)
        except CacheError as e:
            self.logger.warning(f"Cache unavailable, continuing without it: {e}")
            return None

    def clear_cache(self) -> int:
        cache = self._build_cache()
        if cache is None:
            self.console.print(f"{ICON_ERROR} Cache directory is not available.", style="bold red")
            return 1
        size_kb = cache.stats()["total_size_bytes"] / 1024
        removed = cache.clear()
        self.console.print(
            f"{ICON_SUCCESS} Removed {removed} cached entries ({size_kb:.1f} KB).", style="green"
        )
        return 0

    def _build_session_cache(self) -> Optional[CommitsCache]:
        """Cache for an interactive session, with stale entries cleaned out first."""
        cache = self._build_cache()
        if cache is not None:
            cache.clean_expired()
        return cache

    def run(self) -> int:
        """Main application entry. Returns the process exit code."""
        source = get_source("gh", logger=self.logger)
        if not source.is_available():
            self.logger.error("GitHub CLI (gh) not found on PATH")
            self.console.print(f"{ICON_ERROR} {ToolMissingError().user_message}", style="bold red")
            return 1

        self.logger.info("Session started")
        retriever = CommitRetriever(source, cache=self._build_session_cache(), logger=self.logger)
        controller = SessionController(self.settings, SystemClipboard(), logger=self.logger)
        TerminalUI(controller, retriever, self.settings, logger=self.logger).run()

        self.logger.info("Session finished")
        self.console.print("Goodbye!", style="bold blue")
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    app = App(debug=args.debug or debug_requested())
    if args.clear_cache:
        return app.clear_cache()
    try:
        return app.run()
    except Exception as e:
        app.console.print(f"\n{ICON_ERROR} Application Error: {e}", style="bold red")
        app.logger.error("Top level error", exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
