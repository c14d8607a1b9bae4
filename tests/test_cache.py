import json

import pytest

from commitsum.cache import CommitsCache, FileCache
from commitsum.core import CommitRetriever
from commitsum.constants import HISTORY_CACHE_TTL, TODAY_CACHE_TTL
from commitsum.errors import CacheError
from conftest import TODAY, FakeSource, make_commit_set


def _entry_files(cache: FileCache):
    return sorted(cache.directory.glob("*.json"))


# --- FileCache ---


def test_cache_key_is_stable_md5():
    """Same inputs give the same key; different users give different keys."""
    key = FileCache.cache_key("commits", "octocat", "2026-10-19")
    assert key == FileCache.cache_key("commits", "octocat", "2026-10-19")
    assert key != FileCache.cache_key("commits", "hubot", "2026-10-19")
    assert key.endswith(".json")
    assert len(key) == 32 + len(".json")


def test_set_then_get(file_cache):
    file_cache.set("k.json", {"a": 1}, ttl=60)
    assert file_cache.get("k.json") == {"a": 1}


def test_get_missing_key(file_cache):
    assert file_cache.get("absent.json") is None


def test_entry_file_layout(file_cache):
    """Entry files hold data, timestamp, ttl and the owning user."""
    file_cache.set("k.json", [1, 2], ttl=30, user="octocat")
    raw = json.loads((file_cache.directory / "k.json").read_text(encoding="utf-8"))
    assert raw["data"] == [1, 2]
    assert raw["ttl"] == 30
    assert raw["user"] == "octocat"
    assert raw["timestamp"] == file_cache.clock()


def test_ttl_expiry_deletes_entry(file_cache, clock):
    """A 1 second entry is served at +1s and gone at +2s, file included."""
    file_cache.set("k.json", "value", ttl=1)

    clock.advance(1)
    assert file_cache.get("k.json") == "value"

    clock.advance(1)
    assert file_cache.get("k.json") is None
    assert not (file_cache.directory / "k.json").exists()


def test_corrupted_entry_is_removed(file_cache):
    """Undecodable entries read as a miss and are deleted."""
    path = file_cache.directory / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    assert file_cache.get("broken.json") is None
    assert not path.exists()


def test_entry_with_wrong_shape_is_removed(file_cache):
    path = file_cache.directory / "shape.json"
    path.write_text(json.dumps({"data": 1}), encoding="utf-8")

    assert file_cache.get("shape.json") is None
    assert not path.exists()


def test_delete(file_cache):
    file_cache.set("k.json", 1, ttl=60)
    file_cache.delete("k.json")
    file_cache.delete("k.json")
    assert file_cache.get("k.json") is None


def test_clear_removes_everything(file_cache):
    file_cache.set("a.json", 1, ttl=60, user="octocat")
    file_cache.set("b.json", 2, ttl=60, user="hubot")

    assert file_cache.clear() == 2
    assert _entry_files(file_cache) == []


def test_invalidate_user_is_scoped_to_that_user(file_cache):
    """Invalidation removes only the entries written for the given user."""
    file_cache.set("mine.json", 1, ttl=60, user="octocat")
    file_cache.set("theirs.json", 2, ttl=60, user="hubot")

    assert file_cache.invalidate_user("octocat") == 1
    assert file_cache.get("mine.json") is None
    assert file_cache.get("theirs.json") == 2


def test_invalidate_user_removes_unreadable_files(file_cache):
    (file_cache.directory / "junk.json").write_text("garbage", encoding="utf-8")
    file_cache.set("theirs.json", 2, ttl=60, user="hubot")

    file_cache.invalidate_user("octocat")

    assert [p.name for p in _entry_files(file_cache)] == ["theirs.json"]


def test_clean_expired(file_cache, clock):
    file_cache.set("short.json", 1, ttl=1)
    file_cache.set("long.json", 2, ttl=100)
    clock.advance(5)

    assert file_cache.clean_expired() == 1
    assert file_cache.get("long.json") == 2


def test_stats(file_cache, clock):
    file_cache.set("short.json", 1, ttl=1)
    file_cache.set("long.json", 2, ttl=100)
    clock.advance(5)

    stats = file_cache.stats()
    assert stats["total_files"] == 2
    assert stats["expired_files"] == 1
    assert stats["total_size_bytes"] > 0


def test_set_raises_cache_error_on_unserializable(file_cache):
    with pytest.raises(CacheError):
        file_cache.set("k.json", object(), ttl=60)


def test_unwritable_directory_raises_cache_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(CacheError):
        FileCache(directory=blocker / "cache")


# --- CommitsCache ---


def test_ttl_rule_today_vs_history(commits_cache):
    """Queries equal to today's date get the short TTL; everything else the long one."""
    assert commits_cache.ttl_for(TODAY.isoformat()) == TODAY_CACHE_TTL
    assert commits_cache.ttl_for("2026-10-18") == HISTORY_CACHE_TTL
    assert commits_cache.ttl_for("2026-10-12..2026-10-19") == HISTORY_CACHE_TTL


def test_commit_set_round_trip(commits_cache):
    commit_set = make_commit_set({"acme/api": 2, "acme/web": 1}, warning="capped")
    commits_cache.set_commits("octocat", "2026-10-18", commit_set)

    cached = commits_cache.get_commits("octocat", "2026-10-18")

    assert cached == commit_set
    assert cached.repo_list == ["acme/api", "acme/web"]
    assert commits_cache.get_commits("hubot", "2026-10-18") is None


def test_today_entry_expires_after_five_minutes(commits_cache, clock):
    commits_cache.set_commits("octocat", TODAY.isoformat(), make_commit_set({"acme/api": 1}))

    clock.advance(TODAY_CACHE_TTL)
    assert commits_cache.get_commits("octocat", TODAY.isoformat()) is not None

    clock.advance(1)
    assert commits_cache.get_commits("octocat", TODAY.isoformat()) is None


def test_cached_data_with_wrong_shape_is_discarded(commits_cache, file_cache):
    key = FileCache.cache_key(CommitsCache.KEY_PREFIX, "octocat", "2026-10-18")
    file_cache.set(key, {"by_repo": "nope"}, ttl=60, user="octocat")

    assert commits_cache.get_commits("octocat", "2026-10-18") is None
    assert not (file_cache.directory / key).exists()


def test_commits_cache_invalidate_keeps_other_users(commits_cache):
    commits_cache.set_commits("octocat", "2026-10-18", make_commit_set({"a/x": 1}))
    commits_cache.set_commits("hubot", "2026-10-18", make_commit_set({"b/y": 1}))

    commits_cache.invalidate("octocat")

    assert commits_cache.get_commits("octocat", "2026-10-18") is None
    assert commits_cache.get_commits("hubot", "2026-10-18") is not None


def test_invalid_utf8_entry_is_a_miss_and_removed(file_cache):
    """Bytes that are not UTF-8 count as a corrupted entry."""
    path = file_cache.directory / "binary.json"
    path.write_bytes(b"\xff\xfe\x00garbage")

    assert file_cache.get("binary.json") is None
    assert not path.exists()


def test_invalid_utf8_entry_does_not_break_fetch(file_cache, commits_cache):
    """A corrupted entry for the requested key falls through to the source."""
    key = FileCache.cache_key(CommitsCache.KEY_PREFIX, "octocat", "2026-10-01")
    (file_cache.directory / key).write_bytes(b"\xff\xfe\x00garbage")
    source = FakeSource(output="[]")

    commit_set = CommitRetriever(source, cache=commits_cache).fetch("octocat", "2026-10-01")

    assert commit_set.is_empty()
    assert len(source.calls) == 1
    assert commits_cache.get_commits("octocat", "2026-10-01") is not None


def test_stats_counts_invalid_utf8_as_expired(file_cache):
    (file_cache.directory / "binary.json").write_bytes(b"\xff\xfe")
    file_cache.set("ok.json", 1, ttl=60)

    stats = file_cache.stats()

    assert stats["total_files"] == 2
    assert stats["expired_files"] == 1


def test_invalidate_user_ignores_files_that_vanished(file_cache, mocker):
    """Only files actually deleted are counted."""
    file_cache.set("mine.json", 1, ttl=60, user="octocat")
    ghost = file_cache.directory / "ghost.json"
    mocker.patch.object(
        file_cache, "_entry_files", return_value=[ghost, file_cache.directory / "mine.json"]
    )

    assert file_cache.invalidate_user("octocat") == 1


def test_clean_expired_ignores_files_that_vanished(file_cache, clock, mocker):
    file_cache.set("short.json", 1, ttl=1)
    clock.advance(5)
    ghost = file_cache.directory / "ghost.json"
    mocker.patch.object(
        file_cache, "_entry_files", return_value=[ghost, file_cache.directory / "short.json"]
    )

    assert file_cache.clean_expired() == 1


def test_commits_cache_maintenance_passthroughs(commits_cache, clock):
    commits_cache.set_commits("octocat", "2026-10-18", make_commit_set({"a/x": 1}))
    assert commits_cache.stats()["total_files"] == 1

    clock.advance(HISTORY_CACHE_TTL + 1)

    assert commits_cache.clean_expired() == 1
    assert commits_cache.stats()["total_files"] == 0
