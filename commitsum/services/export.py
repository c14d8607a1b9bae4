import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict

from commitsum.constants import ICON_COMMIT
from commitsum.errors import ExportError
from commitsum.schemas import CommitSet, ExportedCommit, ExportFormat, Statistics, SummaryExport
from commitsum.services.statistics import selected_repos

logger = logging.getLogger(__name__)


def _format_commit_line(template: str, repo: str, message: str) -> str:
    default = f"  {ICON_COMMIT} {message}"
    if not template:
        return default
    try:
        return template.format(repo=repo, message=message)
    except (KeyError, IndexError, ValueError) as e:
        logger.warning(f"Ignoring invalid custom template {template!r}: {e}")
        return default


def render_text(
    commit_set: CommitSet,
    selection: Dict[str, bool],
    date_label: str,
    stats: Statistics,
    template: str = "",
) -> str:
    lines = [f"Commits for {date_label}", ""]
    for repo in selected_repos(commit_set, selection):
        lines.append(f"[{repo}]")
        for commit in commit_set.commits_for(repo):
            lines.append(_format_commit_line(template, repo, commit.message))
        lines.append("")

    lines.append(
        f"Total: {stats.total_commits} commits across {stats.total_repositories} repositories"
    )
    return "\n".join(lines) + "\n"


def render_markdown(
    commit_set: CommitSet,
    selection: Dict[str, bool],
    date_label: str,
    stats: Statistics,
    now: datetime | None = None,
) -> str:
    generated_at = (now or datetime.now(timezone.utc)).isoformat(timespec="seconds")

    lines = [
        "# Commit Summary",
        "",
        f"**Date:** {date_label}",
        "",
        "## Statistics",
        "",
        f"- **Total commits:** {stats.total_commits}",
        f"- **Total repositories:** {stats.total_repositories}",
    ]
    if stats.most_active_repo:
        lines.append(
            f"- **Most active:** {stats.most_active_repo} ({stats.max_commits} commits)"
        )
    lines += ["", "## Commits", ""]

    for repo in selected_repos(commit_set, selection):
        lines.append(f"### {repo}")
        lines.append("")
        for commit in commit_set.commits_for(repo):
            lines.append(f"- {commit.message}")
        lines.append("")

    lines += ["---", "", f"_Generated at {generated_at}_"]
    return "\n".join(lines) + "\n"


def render_json(
    commit_set: CommitSet,
    selection: Dict[str, bool],
    date_label: str,
    stats: Statistics,
    now: datetime | None = None,
) -> str:
    repos = selected_repos(commit_set, selection)
    summary = SummaryExport(
        date=date_label,
        total_repos=len(repos),
        total_commits=sum(len(commit_set.commits_for(repo)) for repo in repos),
        commits={
            repo: [
                ExportedCommit(repository=c.repository, message=c.message)
                for c in commit_set.commits_for(repo)
            ]
            for repo in repos
        },
        stats=stats,
        generated_at=(now or datetime.now(timezone.utc)).isoformat(timespec="seconds"),
    )
    return summary.model_dump_json(indent=2)


def render(
    fmt: ExportFormat,
    commit_set: CommitSet,
    selection: Dict[str, bool],
    date_label: str,
    stats: Statistics,
    template: str = "",
) -> str:
    if fmt == ExportFormat.MARKDOWN:
        return render_markdown(commit_set, selection, date_label, stats)
    if fmt == ExportFormat.JSON:
        return render_json(commit_set, selection, date_label, stats)
    return render_text(commit_set, selection, date_label, stats, template)


def generate_filename(day: date, fmt: ExportFormat) -> str:
    return f"commits-{day.isoformat()}{fmt.extension}"


def save_export(content: str, path: Path) -> Path:
    """Writes the rendered export. Raises ExportError on any file system failure."""
    try:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        logger.error(f"Failed to save export to {path}: {e}", exc_info=True)
        raise ExportError(str(e)) from e
    logger.info(f"Export saved | path={path}")
    return path
