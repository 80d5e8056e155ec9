# tests/test_metadata_cache.py
"""Test the TTL-bounded metadata cache"""

import pytest
from datetime import timedelta
from spotsync.exceptions import CacheError, CacheExpiredError, CacheMissError
from spotsync.sync.cache import DEFAULT_TTL, CacheKey, MetadataCache


class FakeClock:
    """Controllable epoch clock"""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs).total_seconds()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(temp_dir, clock):
    return MetadataCache(temp_dir / "cache", clock=clock)


class TestCacheKey:
    """Test cache keys"""

    def test_filename(self):
        assert CacheKey("user", "library").filename == "user_library.json"
        assert CacheKey("user", "playlist", "abc").filename == "user_playlist_abc.json"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            CacheKey("user", "podcast")


class TestMetadataCache:
    """Test snapshot storage and expiry"""

    def test_default_ttl_is_thirty_minutes(self, temp_dir):
        assert DEFAULT_TTL == timedelta(minutes=30)
        assert MetadataCache(temp_dir).ttl == DEFAULT_TTL

    def test_fresh_snapshot_is_served(self, cache, clock, make_track):
        key = CacheKey("user", "library")
        tracks = [make_track("1", "One"), make_track("2", "Two")]
        assert cache.store(key, tracks) is True

        clock.advance(minutes=29)
        entry = cache.fetch(key)

        assert [t.id for t in entry.tracks] == ["1", "2"]
        assert entry.tracks[1].title == "Two"
        assert entry.key == key

    def test_expired_snapshot_is_never_served(self, cache, clock, make_track):
        key = CacheKey("user", "album", "xyz")
        cache.store(key, [make_track()])

        clock.advance(minutes=31)

        with pytest.raises(CacheExpiredError):
            cache.fetch(key)

    def test_missing_snapshot(self, cache):
        with pytest.raises(CacheMissError):
            cache.fetch(CacheKey("user", "library"))

    def test_corrupt_snapshot_is_a_miss(self, cache, temp_dir):
        key = CacheKey("user", "library")
        (temp_dir / "cache").mkdir()
        (temp_dir / "cache" / key.filename).write_text("{]", encoding='utf-8')

        with pytest.raises(CacheMissError):
            cache.fetch(key)

    def test_keys_are_independent(self, cache, make_track):
        cache.store(CacheKey("user", "playlist", "a"), [make_track("1")])

        with pytest.raises(CacheError):
            cache.fetch(CacheKey("user", "playlist", "b"))
        with pytest.raises(CacheError):
            cache.fetch(CacheKey("other", "playlist", "a"))

    def test_invalidate(self, cache, make_track):
        key = CacheKey("user", "library")
        cache.store(key, [make_track()])

        cache.invalidate(key)
        cache.invalidate(key)

        with pytest.raises(CacheMissError):
            cache.fetch(key)

    def test_store_failure_is_reported(self, temp_dir, clock, make_track):
        blocker = temp_dir / "not-a-directory"
        blocker.write_text("x", encoding='utf-8')
        cache = MetadataCache(blocker, clock=clock)

        assert cache.store(CacheKey("user", "library"), [make_track()]) is False
