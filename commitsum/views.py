"""
Rich renderables for each session screen.
"""

from typing import List, Sequence

from rich.console import Group, RenderableType
from rich.padding import Padding
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from commitsum.config import AppSettings
from commitsum.constants import (
    APP_NAME,
    APP_VERSION,
    DATE_RANGE_PRESETS,
    ICON_BREADCRUMB,
    ICON_CHECKED,
    ICON_COMMIT,
    ICON_CURSOR,
    ICON_ERROR,
    ICON_SUCCESS,
    ICON_UNCHECKED,
    ICON_WARNING,
    MSG_NO_SELECTION,
)
from commitsum.errors import NotFoundError, user_message_for
from commitsum.services.statistics import selected_repos
from commitsum.session import EXPORT_FORMATS, Screen, SessionState

BREADCRUMBS = {
    Screen.DATE_RANGE_SELECT: ["Date range"],
    Screen.CUSTOM_DATE_ENTRY: ["Date range", "Custom"],
    Screen.LOADING: ["Date range", "Loading"],
    Screen.REPO_LIST: ["Date range", "Repositories"],
    Screen.REPO_FILTER_ENTRY: ["Date range", "Repositories", "Filter"],
    Screen.SUMMARY: ["Date range", "Repositories", "Summary"],
    Screen.EXPORT_FORMAT_SELECT: ["Date range", "Repositories", "Summary", "Export"],
    Screen.STATISTICS: ["Statistics"],
}

HELP = {
    Screen.DATE_RANGE_SELECT: "↑/↓ move • enter select • q quit",
    Screen.CUSTOM_DATE_ENTRY: "type YYYY-MM-DD or START..END • enter confirm • esc back",
    Screen.LOADING: "esc cancel • q quit",
    Screen.REPO_LIST: (
        "↑/↓ move • space toggle • a all • n none • f filter • s stats • "
        "enter summary • r date • R refresh • q quit"
    ),
    Screen.REPO_FILTER_ENTRY: "type a pattern (* and ? wildcards) • enter apply • esc clear",
    Screen.SUMMARY: "c copy • e export • s stats • esc back • q quit",
    Screen.EXPORT_FORMAT_SELECT: "↑/↓/tab cycle • enter save • c copy • esc back • q quit",
    Screen.STATISTICS: "esc back • q quit",
}

ERROR_HELP = "r change date • R retry • q quit"

# Lines reserved for header, banners and help around a scrolling list
_CHROME_LINES = 10


def _header(state: SessionState) -> Text:
    title = Text(f"{APP_NAME} v{APP_VERSION}", style="bold blue")
    crumbs = BREADCRUMBS.get(state.screen, [])
    if crumbs:
        title.append("  ")
        title.append(ICON_BREADCRUMB.join(crumbs), style="dim")
    if state.date_label and state.screen is not Screen.DATE_RANGE_SELECT:
        title.append(f"  [{state.date_label}]", style="cyan")
    return title


def _help_bar(text: str) -> Text:
    return Text(text, style="dim")


def _banners(state: SessionState) -> List[RenderableType]:
    banners = []
    if state.warning_visible:
        banners.append(Text(f"{ICON_WARNING} {state.commit_set.warning}", style="yellow"))
    if state.message:
        if state.message_is_error:
            banners.append(Text(f"{ICON_ERROR} {state.message}", style="bold red"))
        else:
            banners.append(Text(f"{ICON_SUCCESS} {state.message}", style="bold green"))
    return banners


def _window(count: int, cursor: int, size: int) -> range:
    """Index range of a list viewport that keeps the cursor visible."""
    size = max(size, 1)
    if count <= size:
        return range(count)
    start = min(max(cursor - size // 2, 0), count - size)
    return range(start, start + size)


def _choice_line(label: str, active: bool) -> Text:
    if active:
        return Text(f"{ICON_CURSOR}{label}", style="bold cyan")
    return Text(f"{' ' * len(ICON_CURSOR)}{label}")


def _input_line(prompt: str, value: str, error: str) -> List[RenderableType]:
    line = Text(prompt, style="bold")
    line.append(" ")
    line.append(value)
    line.append("█", style="blink")
    parts: List[RenderableType] = [line]
    if error:
        parts.append(Text(f"{ICON_ERROR} {error}", style="red"))
    return parts


# --- Screens ---


def render_date_range(state: SessionState) -> List[RenderableType]:
    parts: List[RenderableType] = [Text("Select a date range:", style="bold")]
    for index, (_, label) in enumerate(DATE_RANGE_PRESETS):
        parts.append(_choice_line(label, index == state.preset_index))
    return parts


def render_custom_date(state: SessionState) -> List[RenderableType]:
    return _input_line("Date (YYYY-MM-DD or START..END):", state.date_input, state.input_error)


def render_loading(state: SessionState) -> List[RenderableType]:
    return [Text(f"{state.spinner} Fetching commits for {state.date_label}...", style="cyan")]


def render_load_error(state: SessionState) -> List[RenderableType]:
    error = state.load_error
    message = user_message_for(error)
    if isinstance(error, NotFoundError):
        return [Panel(Text(message, style="yellow"), title="No commits", border_style="yellow")]
    return [Panel(Text(message, style="red"), title="Error", border_style="red")]


def render_repo_list(state: SessionState, height: int) -> List[RenderableType]:
    if state.load_error is not None:
        return render_load_error(state)

    commit_set = state.commit_set
    repos = state.displayed_repos
    selected_count = sum(1 for repo in commit_set.repo_list if state.is_selected(repo))

    heading = Text(
        f"{len(commit_set.repo_list)} repositories, {commit_set.total_commits} commits "
        f"({selected_count} selected)",
        style="bold",
    )
    parts: List[RenderableType] = [heading]
    if state.filter_active:
        parts.append(
            Text(f"Filter: {state.filter_input} ({len(repos)} matching)", style="magenta")
        )

    if not repos:
        parts.append(Text("No repositories match the filter.", style="yellow"))
        return parts

    for index in _window(len(repos), state.cursor, height - _CHROME_LINES):
        repo = repos[index]
        icon = ICON_CHECKED if state.is_selected(repo) else ICON_UNCHECKED
        count = len(commit_set.commits_for(repo))
        line = _choice_line(f"{icon} {repo}", index == state.cursor)
        line.append(f" ({count})", style="dim")
        parts.append(line)
    return parts


def render_repo_filter(state: SessionState) -> List[RenderableType]:
    return _input_line("Filter repositories:", state.filter_input, state.input_error)


def _stats_line(state: SessionState) -> Text:
    stats = state.statistics
    line = Text(
        f"{stats.total_commits} commits across {stats.total_repositories} repositories",
        style="bold",
    )
    if stats.most_active_repo:
        line.append(
            f"  most active: {stats.most_active_repo} ({stats.max_commits})", style="dim"
        )
    return line


def render_summary(state: SessionState, settings: AppSettings) -> List[RenderableType]:
    repos = selected_repos(state.commit_set, state.selected)
    if not repos:
        return [Text(MSG_NO_SELECTION, style="yellow")]

    parts: List[RenderableType] = []
    if settings.show_stats and state.statistics is not None:
        parts.append(_stats_line(state))
    for repo in repos:
        parts.append(Text(repo, style="bold cyan"))
        for commit in state.commit_set.commits_for(repo):
            parts.append(Padding(Text(f"{ICON_COMMIT} {commit.message}"), (0, 0, 0, 2)))
    return parts


def render_export(state: SessionState) -> List[RenderableType]:
    parts: List[RenderableType] = [Text("Export format:", style="bold")]
    for index, fmt in enumerate(EXPORT_FORMATS):
        parts.append(_choice_line(f"{fmt.title} ({fmt.extension})", index == state.export_index))
    return parts


def build_statistics_table(state: SessionState) -> Table:
    stats = state.statistics
    table = Table(title="Commit statistics", expand=False)
    table.add_column("Repository", style="cyan")
    table.add_column("Commits", justify="right")
    table.add_column("Activity")

    for repo, count in stats.commits_per_repo.items():
        bar = ProgressBar(total=max(stats.max_commits, 1), completed=count, width=24)
        table.add_row(repo, str(count), bar)
    return table


def render_statistics(state: SessionState) -> List[RenderableType]:
    stats = state.statistics
    if stats is None or not stats.total_repositories:
        return [Text(MSG_NO_SELECTION, style="yellow")]
    return [_stats_line(state), build_statistics_table(state)]


def render(state: SessionState, settings: AppSettings, height: int = 40) -> RenderableType:
    """Builds the full frame for the current screen."""
    screen = state.screen
    if screen is Screen.DATE_RANGE_SELECT:
        body = render_date_range(state)
    elif screen is Screen.CUSTOM_DATE_ENTRY:
        body = render_custom_date(state)
    elif screen is Screen.LOADING:
        body = render_loading(state)
    elif screen is Screen.REPO_LIST:
        body = render_repo_list(state, height)
    elif screen is Screen.REPO_FILTER_ENTRY:
        body = render_repo_filter(state)
    elif screen is Screen.SUMMARY:
        body = render_summary(state, settings)
    elif screen is Screen.EXPORT_FORMAT_SELECT:
        body = render_export(state)
    else:
        body = render_statistics(state)

    help_text = HELP[screen]
    if screen is Screen.REPO_LIST and state.load_error is not None:
        help_text = ERROR_HELP

    frame: Sequence[RenderableType] = [
        _header(state),
        Text(""),
        *_banners(state),
        *body,
        Text(""),
        _help_bar(help_text),
    ]
    return Group(*frame)
