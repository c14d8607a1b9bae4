"""
Screen state machine for an interactive commit summary session.

The controller consumes one event at a time (a key press, a spinner tick or a
finished fetch) and returns at most one effect for the driver to execute.
It never blocks and never performs the fetch itself.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from commitsum.config import AppSettings
from commitsum.constants import (
    DATE_INPUT_MAX_LENGTH,
    DATE_RANGE_PRESETS,
    FILTER_INPUT_MAX_LENGTH,
    MSG_COPIED,
    PRESET_CUSTOM,
    SPINNER_FRAMES,
)
from commitsum.dates import parse_date_input, resolve_preset
from commitsum.errors import ClipboardError, ExportError, NotFoundError, ValidationError
from commitsum.patterns import filter_repos
from commitsum.schemas import CommitSet, DateRange, ExportFormat, Statistics
from commitsum.services import export, statistics
from commitsum.services.output_handler import Clipboard
from commitsum.utils import resolve_output_path

EXPORT_FORMATS = [ExportFormat.TEXT, ExportFormat.MARKDOWN, ExportFormat.JSON]


class Screen(Enum):
    DATE_RANGE_SELECT = "date_range_select"
    CUSTOM_DATE_ENTRY = "custom_date_entry"
    REPO_FILTER_ENTRY = "repo_filter_entry"
    REPO_LIST = "repo_list"
    SUMMARY = "summary"
    EXPORT_FORMAT_SELECT = "export_format_select"
    STATISTICS = "statistics"
    LOADING = "loading"


# --- Events ---


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class CommitsLoaded:
    request_id: int
    commit_set: Optional[CommitSet] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Tick:
    pass


Event = Union[KeyPress, CommitsLoaded, Tick]


# --- Effects ---


@dataclass(frozen=True)
class FetchCommits:
    request_id: int
    date_range: DateRange
    refresh: bool = False


@dataclass(frozen=True)
class CancelFetch:
    request_id: int


@dataclass(frozen=True)
class Quit:
    pass


Effect = Union[FetchCommits, CancelFetch, Quit]


@dataclass
class SessionState:
    screen: Screen = Screen.DATE_RANGE_SELECT
    preset_index: int = 0
    date_range: Optional[DateRange] = None
    date_input: str = ""
    filter_input: str = ""
    filter_active: bool = False
    commit_set: CommitSet = field(default_factory=CommitSet)
    displayed_repos: List[str] = field(default_factory=list)
    selected: Dict[str, bool] = field(default_factory=dict)
    cursor: int = 0
    export_index: int = 0
    statistics: Optional[Statistics] = None
    stats_return: Screen = Screen.REPO_LIST
    input_error: str = ""
    load_error: Optional[BaseException] = None
    message: str = ""
    message_is_error: bool = False
    spinner_frame: int = 0
    pending_request: Optional[int] = None
    last_request: int = 0

    @property
    def date_label(self) -> str:
        return self.date_range.label if self.date_range else ""

    @property
    def export_format(self) -> ExportFormat:
        return EXPORT_FORMATS[self.export_index]

    @property
    def warning_visible(self) -> bool:
        return (
            bool(self.commit_set.warning)
            and self.load_error is None
            and self.screen in (Screen.REPO_LIST, Screen.SUMMARY, Screen.STATISTICS)
        )

    @property
    def spinner(self) -> str:
        return SPINNER_FRAMES[self.spinner_frame % len(SPINNER_FRAMES)]

    @property
    def current_repo(self) -> Optional[str]:
        if 0 <= self.cursor < len(self.displayed_repos):
            return self.displayed_repos[self.cursor]
        return None

    def is_selected(self, repo: str) -> bool:
        return bool(self.selected.get(repo))


def _type_into(text: str, key: str, limit: int) -> str:
    """Applies a key press to a single-line text input."""
    if key == "backspace":
        return text[:-1]
    char = " " if key == "space" else key
    if len(char) != 1 or not char.isprintable():
        return text
    if len(text) >= limit:
        return text
    return text + char


class SessionController:
    def __init__(
        self,
        settings: AppSettings,
        clipboard: Clipboard,
        output_root: Optional[Path] = None,
        today: Callable[[], date] = date.today,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.clipboard = clipboard
        self.output_root = output_root
        self.today = today
        self.logger = logger or logging.getLogger(__name__)

        preset_keys = [key for key, _ in DATE_RANGE_PRESETS]
        default_preset = settings.default_date_range
        self.state = SessionState(
            preset_index=preset_keys.index(default_preset) if default_preset in preset_keys else 0,
            date_input=today().isoformat(),
            filter_input=settings.repo_filter,
            export_index=EXPORT_FORMATS.index(settings.output_format),
        )
        self._key_handlers = {
            Screen.DATE_RANGE_SELECT: self._on_date_range_key,
            Screen.CUSTOM_DATE_ENTRY: self._on_custom_date_key,
            Screen.LOADING: self._on_loading_key,
            Screen.REPO_LIST: self._on_repo_list_key,
            Screen.REPO_FILTER_ENTRY: self._on_repo_filter_key,
            Screen.SUMMARY: self._on_summary_key,
            Screen.EXPORT_FORMAT_SELECT: self._on_export_key,
            Screen.STATISTICS: self._on_statistics_key,
        }

    # --- Dispatch ---

    def handle(self, event: Event) -> Optional[Effect]:
        if isinstance(event, KeyPress):
            return self._on_key(event.key)
        if isinstance(event, CommitsLoaded):
            self._on_commits_loaded(event)
        elif isinstance(event, Tick):
            if self.state.screen is Screen.LOADING:
                self.state.spinner_frame += 1
        return None

    def _on_key(self, key: str) -> Optional[Effect]:
        if key == "ctrl+c":
            return self._quit()

        self.state.message = ""
        self.state.message_is_error = False
        self.state.input_error = ""
        return self._key_handlers[self.state.screen](key)

    def _quit(self) -> Quit:
        self.logger.info(f"User action: quit | screen={self.state.screen.value}")
        return Quit()

    # --- Date selection ---

    def _on_date_range_key(self, key: str) -> Optional[Effect]:
        state = self.state
        if key in ("q", "escape"):
            return self._quit()
        if key in ("down", "j"):
            state.preset_index = min(state.preset_index + 1, len(DATE_RANGE_PRESETS) - 1)
        elif key in ("up", "k"):
            state.preset_index = max(state.preset_index - 1, 0)
        elif key == "enter":
            preset = DATE_RANGE_PRESETS[state.preset_index][0]
            if preset == PRESET_CUSTOM:
                state.screen = Screen.CUSTOM_DATE_ENTRY
                return None
            state.date_range = resolve_preset(preset, self.today())
            self.logger.info(f"User action: select date range | preset={preset}")
            return self._start_loading()
        return None

    def _on_custom_date_key(self, key: str) -> Optional[Effect]:
        state = self.state
        if key == "escape":
            state.screen = Screen.DATE_RANGE_SELECT
        elif key == "enter":
            try:
                state.date_range = parse_date_input(state.date_input, self.today())
            except ValidationError as e:
                state.input_error = e.user_message
                self.logger.debug(f"Rejected custom date {state.date_input!r}: {e}")
                return None
            self.logger.info(f"User action: custom date range | range={state.date_range.query}")
            return self._start_loading()
        else:
            state.date_input = _type_into(state.date_input, key, DATE_INPUT_MAX_LENGTH)
        return None

    # --- Loading ---

    def _start_loading(self, refresh: bool = False) -> FetchCommits:
        state = self.state
        state.last_request += 1
        state.pending_request = state.last_request
        state.screen = Screen.LOADING
        state.spinner_frame = 0
        state.load_error = None
        return FetchCommits(state.pending_request, state.date_range, refresh)

    def _on_loading_key(self, key: str) -> Optional[Effect]:
        state = self.state
        if key == "q":
            return self._quit()
        if key == "escape" and state.pending_request is not None:
            request_id = state.pending_request
            state.pending_request = None
            state.screen = Screen.DATE_RANGE_SELECT
            self.logger.info(f"User action: cancel loading | request={request_id}")
            return CancelFetch(request_id)
        return None

    def _on_commits_loaded(self, event: CommitsLoaded) -> None:
        state = self.state
        if event.request_id != state.pending_request:
            self.logger.debug(f"Ignoring stale fetch result | request={event.request_id}")
            return
        state.pending_request = None

        if event.error is not None:
            self.logger.error(f"Commit retrieval failed: {event.error}")
            state.commit_set = CommitSet()
            state.load_error = event.error
        else:
            state.commit_set = event.commit_set or CommitSet()
            state.load_error = None
            if state.commit_set.is_empty():
                state.load_error = NotFoundError(state.date_label)
            self.logger.info(
                f"Commits loaded | repos={len(state.commit_set.repo_list)} "
                f"commits={state.commit_set.total_commits}"
            )

        state.selected = {}
        state.statistics = None
        self._apply_filter(state.filter_input)
        state.screen = Screen.REPO_LIST

    # --- Repository list ---

    def _apply_filter(self, pattern: str) -> None:
        state = self.state
        state.filter_input = pattern
        state.filter_active = bool(pattern.strip())
        if state.filter_active:
            state.displayed_repos = filter_repos(state.commit_set.repo_list, pattern.strip())
        else:
            state.displayed_repos = list(state.commit_set.repo_list)
        state.cursor = 0

    def _compute_statistics(self) -> Statistics:
        self.state.statistics = statistics.compute(self.state.commit_set, self.state.selected)
        return self.state.statistics

    def _show_statistics(self, return_to: Screen) -> None:
        self._compute_statistics()
        self.state.stats_return = return_to
        self.state.screen = Screen.STATISTICS

    def _on_repo_list_key(self, key: str) -> Optional[Effect]:
        state = self.state
        if key == "q":
            return self._quit()
        if key == "r":
            state.load_error = None
            state.cursor = 0
            state.screen = Screen.DATE_RANGE_SELECT
            return None
        if key == "R" and state.date_range is not None:
            self.logger.info(f"User action: refresh | range={state.date_range.query}")
            return self._start_loading(refresh=True)
        if state.load_error is not None:
            return None

        repos = state.displayed_repos
        if key == "space":
            repo = state.current_repo
            if repo is not None:
                state.selected[repo] = not state.is_selected(repo)
        elif key in ("down", "j"):
            state.cursor = min(state.cursor + 1, max(len(repos) - 1, 0))
        elif key in ("up", "k"):
            state.cursor = max(state.cursor - 1, 0)
        elif key == "a":
            for repo in repos:
                state.selected[repo] = True
        elif key == "n":
            for repo in repos:
                state.selected[repo] = False
        elif key in ("f", "/"):
            state.screen = Screen.REPO_FILTER_ENTRY
        elif key == "s":
            self._show_statistics(Screen.REPO_LIST)
        elif key == "enter":
            self._compute_statistics()
            state.screen = Screen.SUMMARY
            if self.settings.auto_copy and state.statistics.total_repositories:
                self._copy(self._render(ExportFormat.TEXT))
        return None

    def _on_repo_filter_key(self, key: str) -> Optional[Effect]:
        state = self.state
        if key == "enter":
            self._apply_filter(state.filter_input)
            self.logger.info(f"User action: filter | pattern={state.filter_input!r}")
            state.screen = Screen.REPO_LIST
        elif key == "escape":
            self._apply_filter("")
            state.screen = Screen.REPO_LIST
        else:
            state.filter_input = _type_into(state.filter_input, key, FILTER_INPUT_MAX_LENGTH)
        return None

    # --- Summary, export and statistics ---

    def _render(self, fmt: ExportFormat) -> str:
        state = self.state
        return export.render(
            fmt,
            state.commit_set,
            state.selected,
            state.date_label,
            self._compute_statistics(),
            template=self.settings.custom_template,
        )

    def _copy(self, content: str) -> None:
        try:
            self.clipboard.copy(content)
        except ClipboardError as e:
            self._set_message(e.user_message, error=True)
            return
        self._set_message(MSG_COPIED)

    def _save(self) -> None:
        state = self.state
        fmt = state.export_format
        day = state.date_range.start if state.date_range else self.today()
        path = resolve_output_path(export.generate_filename(day, fmt), root=self.output_root)
        try:
            saved = export.save_export(self._render(fmt), path)
        except ExportError as e:
            self._set_message(e.user_message, error=True)
            return
        self.logger.info(f"User action: export | format={fmt.value} path={saved}")
        self._set_message(f"Saved to {saved}")

    def _set_message(self, text: str, error: bool = False) -> None:
        self.state.message = text
        self.state.message_is_error = error

    def _on_summary_key(self, key: str) -> Optional[Effect]:
        state = self.state
        if key == "q":
            return self._quit()
        if key in ("escape", "b"):
            state.screen = Screen.REPO_LIST
        elif key == "c":
            self._copy(self._render(ExportFormat.TEXT))
        elif key == "e":
            state.export_index = EXPORT_FORMATS.index(self.settings.output_format)
            state.screen = Screen.EXPORT_FORMAT_SELECT
        elif key == "s":
            self._show_statistics(Screen.SUMMARY)
        return None

    def _on_export_key(self, key: str) -> Optional[Effect]:
        state = self.state
        if key == "q":
            return self._quit()
        if key in ("escape", "b"):
            state.screen = Screen.SUMMARY
        elif key in ("down", "j", "tab"):
            state.export_index = (state.export_index + 1) % len(EXPORT_FORMATS)
        elif key in ("up", "k"):
            state.export_index = (state.export_index - 1) % len(EXPORT_FORMATS)
        elif key == "enter":
            self._save()
            state.screen = Screen.SUMMARY
        elif key == "c":
            self._copy(self._render(state.export_format))
        return None

    def _on_statistics_key(self, key: str) -> Optional[Effect]:
        if key == "q":
            return self._quit()
        if key in ("escape", "b"):
            self.state.screen = self.state.stats_return
        return None
