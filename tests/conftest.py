import threading
from datetime import date

import pytest

from commitsum.cache import CommitsCache, FileCache
from commitsum.config import AppSettings
from commitsum.errors import ClipboardError
from commitsum.providers import CommitSource
from commitsum.schemas import CommitRecord, CommitSet
from commitsum.services.output_handler import Clipboard

TODAY = date(2026, 10, 19)


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource(CommitSource):
    """Commit source returning canned gh output and recording every call."""

    def __init__(self, output: str = "[]", user: str = "octocat", error: Exception | None = None):
        self.output = output
        self.user = user
        self.error = error
        self.calls = []
        self.user_calls = 0

    def get_user(self) -> str:
        self.user_calls += 1
        return self.user

    def search_commits(self, author, date_query, limit=1000, cancel_event=None):
        self.calls.append((author, date_query, limit))
        if self.error is not None:
            raise self.error
        return self.output


class FakeClipboard(Clipboard):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.copied = []

    def copy(self, text: str) -> None:
        if self.fail:
            raise ClipboardError("no clipboard mechanism available")
        self.copied.append(text)


def make_commit_set(counts: dict, warning: str = "") -> CommitSet:
    """Builds a CommitSet with ``counts[repo]`` numbered commits per repository."""
    records = [
        CommitRecord(repository=repo, message=f"{repo} change {i + 1}")
        for repo, count in counts.items()
        for i in range(count)
    ]
    return CommitSet.from_records(records, warning=warning)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def file_cache(tmp_path, clock):
    return FileCache(directory=tmp_path / "cache", clock=clock)


@pytest.fixture
def commits_cache(file_cache):
    return CommitsCache(file_cache, today=lambda: TODAY)


@pytest.fixture
def settings():
    return AppSettings.model_construct()


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def cancel_event():
    return threading.Event()
