import json
import logging
import threading
from datetime import date
from typing import Callable, List

from commitsum.cache import CommitsCache
from commitsum.constants import MAX_COMMITS_TO_FETCH, TRUNCATION_WARNING
from commitsum.dates import validate_date_range
from commitsum.errors import CacheError, ParseError
from commitsum.providers import CommitSource
from commitsum.schemas import CommitRecord, CommitSet, DateRange

# Initialize module-level logger
logger = logging.getLogger(__name__)

_DECODER = json.JSONDecoder()


def parse_search_output(raw: str) -> List[dict]:
    """
    Accepts either a single JSON array or a stream of JSON objects separated
    by whitespace/newlines. Malformed input anywhere, including trailing
    garbage, raises ParseError.
    """
    text = (raw or "").strip()
    if not text:
        return []

    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON array from gh: {e}") from e
        if not isinstance(items, list):
            raise ParseError("Expected a JSON array from gh")
        return items

    items = []
    pos = 0
    while pos < len(text):
        try:
            item, end = _DECODER.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON record from gh at offset {pos}: {e}") from e
        items.append(item)
        pos = end
        while pos < len(text) and text[pos].isspace():
            pos += 1
    return items


def _first_line(text: str) -> str:
    return text.strip().split("\n")[0].strip()


def _resolve_repository(item: dict) -> str:
    repository = item.get("repository")
    if not isinstance(repository, dict):
        return ""
    for field in ("nameWithOwner", "fullName", "full_name", "name"):
        value = repository.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _resolve_headline(item: dict) -> str:
    commit = item.get("commit")
    if not isinstance(commit, dict):
        return ""
    headline = commit.get("messageHeadline")
    if isinstance(headline, str) and headline.strip():
        return _first_line(headline)
    message = commit.get("message")
    if isinstance(message, str):
        return _first_line(message)
    return ""


def _process_item(item) -> CommitRecord | None:
    """Turns one search result into a CommitRecord, or None when a field is missing."""
    if not isinstance(item, dict):
        return None
    repository = _resolve_repository(item)
    message = _resolve_headline(item)
    if not repository or not message:
        return None
    return CommitRecord(repository=repository, message=message)


def build_commit_set(items: List[dict], limit: int = MAX_COMMITS_TO_FETCH) -> CommitSet:
    records = []
    for item in items:
        record = _process_item(item)
        if record is None:
            logger.debug(f"Skipping search result without repository or message: {item!r:.200}")
            continue
        records.append(record)

    warning = ""
    if len(items) >= limit:
        warning = TRUNCATION_WARNING.format(limit=limit)
    return CommitSet.from_records(records, warning=warning)


class CommitRetriever:
    """
    Fetches a user's commits for a date range.
    The cache is consulted first; the external source is the source of truth.
    """

    def __init__(
        self,
        source: CommitSource,
        cache: CommitsCache | None = None,
        limit: int = MAX_COMMITS_TO_FETCH,
        today: Callable[[], date] = date.today,
        logger: logging.Logger | None = None,
    ):
        self.source = source
        self.cache = cache
        self.limit = limit
        self.today = today
        self.logger = logger or logging.getLogger(__name__)
        self._user: str | None = None
        self._user_lock = threading.Lock()

    def current_user(self) -> str:
        """Resolves the authenticated identity once per session."""
        with self._user_lock:
            if self._user is None:
                user = self.source.get_user()
                self.logger.info(f"Resolved GitHub user | user={user}")
                self._user = user
            return self._user

    def fetch(self, user: str, date_query: str, cancel_event: threading.Event | None = None) -> CommitSet:
        cached = self._cache_get(user, date_query)
        if cached is not None:
            return cached

        self.logger.info(f"Fetching commits | user={user} date_range={date_query}")
        raw = self.source.search_commits(user, date_query, self.limit, cancel_event)
        items = parse_search_output(raw)
        commit_set = build_commit_set(items, self.limit)
        if commit_set.warning:
            self.logger.warning(commit_set.warning)

        self._cache_set(user, date_query, commit_set)
        return commit_set

    def fetch_range(
        self,
        date_range: DateRange,
        cancel_event: threading.Event | None = None,
        refresh: bool = False,
    ) -> CommitSet:
        validate_date_range(date_range.start, date_range.end, self.today())
        user = self.current_user()
        if refresh:
            self.invalidate(user)
        return self.fetch(user, date_range.query, cancel_event)

    def invalidate(self, user: str) -> None:
        if self.cache is None:
            return
        try:
            self.cache.invalidate(user)
        except (CacheError, OSError) as e:
            self.logger.warning(f"Cache invalidation failed: {e}")

    def _cache_get(self, user: str, date_query: str) -> CommitSet | None:
        if self.cache is None:
            return None
        try:
            return self.cache.get_commits(user, date_query)
        except (CacheError, OSError) as e:
            self.logger.warning(f"Cache read failed, treating as miss: {e}")
            return None

    def _cache_set(self, user: str, date_query: str, commit_set: CommitSet) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set_commits(user, date_query, commit_set)
        except (CacheError, OSError) as e:
            self.logger.warning(f"Cache write failed: {e}")
