"""
File-based cache for commit search results.

One JSON file per key holding ``{data, timestamp, ttl, user}``. Reads never
raise: corrupt, unreadable or expired entries are deleted and reported as a
miss. Writes raise CacheError, which callers log and ignore.
"""

import hashlib
import logging
import time
from datetime import date
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from commitsum.constants import HISTORY_CACHE_TTL, TODAY_CACHE_TTL
from commitsum.errors import CacheError
from commitsum.schemas import CacheEntry, CommitSet
from commitsum.utils import CACHE_DIR


class FileCache:
    def __init__(
        self,
        directory: Path = CACHE_DIR,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ):
        self.directory = Path(directory)
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"Failed to create cache directory {self.directory}: {e}") from e

    @staticmethod
    def cache_key(prefix: str, *params: str) -> str:
        combined = "-".join([prefix, *params])
        return hashlib.md5(combined.encode("utf-8")).hexdigest() + ".json"

    def _path(self, key: str) -> Path:
        return self.directory / key

    def _entry_files(self) -> list[Path]:
        return sorted(self.directory.glob("*.json"))

    def _discard(self, path: Path) -> bool:
        """Deletes a cache file. Returns whether this call removed it."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            self.logger.warning(f"Could not remove cache file {path.name}: {e}")
            return False
        return True

    def _load_entry(self, path: Path) -> tuple[CacheEntry | None, bool]:
        """
        Returns ``(entry, discarded)``. Anything that cannot be read or decoded
        is deleted and comes back as ``(None, True)``; a file that vanished
        comes back as ``(None, False)``.
        """
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None, False
        except OSError as e:
            self.logger.warning(f"Failed to read cache file {path.name}: {e}")
            return None, self._discard(path)

        try:
            return CacheEntry.model_validate_json(raw), False
        except (ValidationError, UnicodeDecodeError):
            self.logger.warning(f"Removing corrupted cache file {path.name}")
            return None, self._discard(path)

    def _read_entry(self, path: Path) -> CacheEntry | None:
        return self._load_entry(path)[0]

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        entry = self._read_entry(path)
        if entry is None:
            return None

        if entry.is_expired(self.clock()):
            self._discard(path)
            self.logger.debug(f"Cache entry expired and removed | key={key}")
            return None

        self.logger.debug(f"Cache hit | key={key}")
        return entry.data

    def set(self, key: str, data: Any, ttl: float, user: str | None = None) -> None:
        entry = CacheEntry(data=data, timestamp=self.clock(), ttl=ttl, user=user)
        try:
            self._path(key).write_text(entry.model_dump_json(), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise CacheError(f"Failed to write cache file {key}: {e}") from e
        self.logger.debug(f"Cache entry saved | key={key} ttl_seconds={ttl}")

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(f"Failed to delete cache file {key}: {e}") from e

    def clear(self) -> int:
        removed = sum(1 for path in self._entry_files() if self._discard(path))
        self.logger.info(f"Cache cleared | files_removed={removed}")
        return removed

    def invalidate_user(self, user: str) -> int:
        """Removes the entries written for ``user``, plus any unreadable files."""
        removed = 0
        for path in self._entry_files():
            entry, discarded = self._load_entry(path)
            if entry is not None and entry.user == user:
                discarded = self._discard(path)
            removed += discarded
        self.logger.info(f"User cache invalidated | user={user} files_removed={removed}")
        return removed

    def clean_expired(self) -> int:
        removed = 0
        now = self.clock()
        for path in self._entry_files():
            entry, discarded = self._load_entry(path)
            if entry is not None and entry.is_expired(now):
                discarded = self._discard(path)
            removed += discarded
        if removed:
            self.logger.info(f"Expired cache entries cleaned | removed_count={removed}")
        return removed

    def stats(self) -> dict:
        files = self._entry_files()
        now = self.clock()
        expired = 0
        total_size = 0
        for path in files:
            try:
                raw = path.read_bytes()
                total_size += len(raw)
                entry = CacheEntry.model_validate_json(raw)
            except (OSError, ValidationError, UnicodeDecodeError):
                expired += 1
                continue
            if entry.is_expired(now):
                expired += 1
        return {
            "total_files": len(files),
            "expired_files": expired,
            "total_size_bytes": total_size,
        }


class CommitsCache:
    """Commit search results keyed by (user, date query)."""

    KEY_PREFIX = "commits"

    def __init__(
        self,
        cache: FileCache,
        today: Callable[[], date] = date.today,
        logger: logging.Logger | None = None,
    ):
        self.cache = cache
        self.today = today
        self.logger = logger or logging.getLogger(__name__)

    def ttl_for(self, date_query: str) -> int:
        """Today's commits change quickly; history is stable."""
        if date_query == self.today().isoformat():
            return TODAY_CACHE_TTL
        return HISTORY_CACHE_TTL

    def get_commits(self, user: str, date_query: str) -> CommitSet | None:
        key = self.cache.cache_key(self.KEY_PREFIX, user, date_query)
        data = self.cache.get(key)
        if data is None:
            return None
        try:
            commit_set = CommitSet.model_validate(data)
        except ValidationError:
            self.logger.warning(f"Discarding cached commits with unexpected shape | key={key}")
            try:
                self.cache.delete(key)
            except CacheError as e:
                self.logger.warning(str(e))
            return None
        self.logger.debug(f"Commits cache hit | user={user} date_range={date_query}")
        return commit_set

    def set_commits(self, user: str, date_query: str, commit_set: CommitSet) -> None:
        key = self.cache.cache_key(self.KEY_PREFIX, user, date_query)
        ttl = self.ttl_for(date_query)
        self.cache.set(key, commit_set.model_dump(mode="json"), ttl, user=user)
        self.logger.debug(
            f"Commits cached | user={user} date_range={date_query} ttl_minutes={ttl // 60}"
        )

    def invalidate(self, user: str) -> int:
        return self.cache.invalidate_user(user)

    def clear(self) -> int:
        return self.cache.clear()

    def clean_expired(self) -> int:
        return self.cache.clean_expired()

    def stats(self) -> dict:
        return self.cache.stats()
