from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from commitsum.constants import DATE_RANGE_SEPARATOR


class CommitRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    repository: str
    message: str


class CommitSet(BaseModel):
    """Commits grouped by repository. ``repo_list`` always mirrors ``by_repo``."""

    by_repo: dict[str, list[CommitRecord]] = Field(default_factory=dict)
    repo_list: list[str] = Field(default_factory=list)
    warning: str = ""

    @model_validator(mode="after")
    def _derive_repo_list(self):
        self.repo_list = sorted(self.by_repo)
        return self

    @classmethod
    def from_records(cls, records: list[CommitRecord], warning: str = "") -> "CommitSet":
        by_repo: dict[str, list[CommitRecord]] = {}
        for record in records:
            by_repo.setdefault(record.repository, []).append(record)
        return cls(by_repo=by_repo, warning=warning)

    def commits_for(self, repo: str) -> list[CommitRecord]:
        return self.by_repo.get(repo, [])

    @property
    def total_commits(self) -> int:
        return sum(len(commits) for commits in self.by_repo.values())

    def is_empty(self) -> bool:
        return not self.by_repo


class DateRange(BaseModel):
    """Inclusive range of calendar days."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self):
        if self.start > self.end:
            raise ValueError("start date cannot be after end date")
        return self

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end

    @property
    def label(self) -> str:
        if self.is_single_day:
            return self.start.isoformat()
        return f"{self.start.isoformat()} → {self.end.isoformat()}"

    @property
    def query(self) -> str:
        """The ``--committer-date`` argument understood by gh search."""
        if self.is_single_day:
            return self.start.isoformat()
        return f"{self.start.isoformat()}{DATE_RANGE_SEPARATOR}{self.end.isoformat()}"


class CacheEntry(BaseModel):
    data: Any
    timestamp: float
    ttl: float
    user: str | None = None

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class Statistics(BaseModel):
    total_commits: int = 0
    total_repositories: int = 0
    commits_per_repo: dict[str, int] = Field(default_factory=dict)
    most_active_repo: str = ""
    max_commits: int = 0


class ExportFormat(str, Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"

    @property
    def extension(self) -> str:
        return {"text": ".txt", "markdown": ".md", "json": ".json"}[self.value]

    @property
    def title(self) -> str:
        return {"text": "Text", "markdown": "Markdown", "json": "JSON"}[self.value]


class ExportedCommit(BaseModel):
    repository: str
    message: str


class SummaryExport(BaseModel):
    """Canonical JSON export. Field names are relied on by downstream tooling."""

    date: str
    total_repos: int
    total_commits: int
    commits: dict[str, list[ExportedCommit]]
    stats: Statistics
    generated_at: str
