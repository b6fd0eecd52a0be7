from __future__ import annotations

import asyncio

import pytest

from depscout.core.cache import CacheEntry, PackageCache
from depscout.models import PackageVersionInfo


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> PackageCache:
    return PackageCache(max_size=3, ttl=300, error_ttl=120, cleanup_interval=60, clock=clock)


def _ok(name: str, version: str = "1.0.0") -> PackageVersionInfo:
    return PackageVersionInfo(name=name, latest_version=version)


def _failed(name: str) -> PackageVersionInfo:
    return PackageVersionInfo(name=name, latest_version="unknown", error="Package not found")


@pytest.mark.unit
class TestCacheEntry:
    """Tests for CacheEntry expiry boundary."""

    def test_expiry_is_strict(self) -> None:
        entry = CacheEntry(data=_ok("a"), timestamp=0.0, expires_at=10.0)

        assert entry.is_expired(10.0) is False
        assert entry.is_expired(10.001) is True


@pytest.mark.unit
class TestPackageCacheBasics:
    """Tests for keying, get and set."""

    def test_rejects_non_positive_max_size(self) -> None:
        with pytest.raises(ValueError):
            PackageCache(max_size=0)

    def test_key_is_case_insensitive_per_manager(self) -> None:
        assert PackageCache.make_key("Lodash", "npm") == "npm:lodash"

    def test_set_then_get(self, cache: PackageCache) -> None:
        info = _ok("lodash", "4.17.21")
        cache.set("lodash", "npm", info)

        assert cache.get("LODASH", "npm") is info
        assert "npm:lodash" in cache
        assert len(cache) == 1

    def test_managers_do_not_collide(self, cache: PackageCache) -> None:
        """Test the same name under two managers is cached separately."""
        cache.set("http", "pip", _ok("http", "0.1"))
        cache.set("http", "pub", _ok("http", "1.2.0"))

        assert cache.get("http", "pip").latest_version == "0.1"
        assert cache.get("http", "pub").latest_version == "1.2.0"

    def test_miss(self, cache: PackageCache) -> None:
        assert cache.get("missing", "npm") is None

    def test_delete_and_clear(self, cache: PackageCache) -> None:
        cache.set("a", "npm", _ok("a"))
        cache.set("b", "npm", _ok("b"))

        assert cache.delete("a", "npm") is True
        assert cache.delete("a", "npm") is False

        cache.clear()
        assert len(cache) == 0


@pytest.mark.unit
class TestPackageCacheExpiry:
    """Tests for TTL handling."""

    def test_success_lives_for_ttl(self, cache: PackageCache, clock: FakeClock) -> None:
        cache.set("a", "npm", _ok("a"))

        clock.advance(300)
        assert cache.get("a", "npm") is not None

        clock.advance(1)
        assert cache.get("a", "npm") is None
        assert len(cache) == 0

    def test_error_uses_shorter_ttl(self, cache: PackageCache, clock: FakeClock) -> None:
        """Test failed lookups expire after error_ttl."""
        cache.set("gone", "npm", _failed("gone"))

        clock.advance(121)
        assert cache.get("gone", "npm") is None

    def test_cleanup_removes_only_expired(self, cache: PackageCache, clock: FakeClock) -> None:
        cache.set("ok", "npm", _ok("ok"))
        cache.set("bad", "npm", _failed("bad"))

        clock.advance(200)

        assert cache.cleanup() == 1
        assert cache.get("ok", "npm") is not None
        assert cache.get("bad", "npm") is None

    def test_stats(self, cache: PackageCache, clock: FakeClock) -> None:
        cache.set("a", "npm", _ok("a"))
        cache.set("b", "pip", _failed("b"))
        clock.advance(150)
        cache.set("c", "pub", _failed("c"))

        stats = cache.stats()

        assert stats.total_entries == 3
        assert stats.expired_entries == 1
        assert stats.valid_entries == 2
        assert stats.success_entries == 1
        assert stats.error_entries == 1
        assert stats.max_size == 3


@pytest.mark.unit
class TestPackageCacheEviction:
    """Tests for the size bound."""

    def test_oldest_evicted(self, cache: PackageCache, clock: FakeClock) -> None:
        for name in ("a", "b", "c", "d"):
            cache.set(name, "npm", _ok(name))
            clock.advance(1)

        assert len(cache) == 3
        assert cache.get("a", "npm") is None
        assert cache.get("d", "npm") is not None

    def test_equal_timestamps_evict_in_insertion_order(self, cache: PackageCache) -> None:
        for name in ("a", "b", "c", "d", "e"):
            cache.set(name, "npm", _ok(name))

        assert len(cache) == 3
        assert cache.get("a", "npm") is None
        assert cache.get("b", "npm") is None
        assert cache.get("c", "npm") is not None

    def test_refresh_moves_entry_to_newest(self, cache: PackageCache, clock: FakeClock) -> None:
        """Test re-setting an entry protects it from the next eviction."""
        for name in ("a", "b", "c"):
            cache.set(name, "npm", _ok(name))
            clock.advance(1)

        cache.set("a", "npm", _ok("a", "2.0.0"))
        clock.advance(1)
        cache.set("d", "npm", _ok("d"))

        assert cache.get("a", "npm").latest_version == "2.0.0"
        assert cache.get("b", "npm") is None


@pytest.mark.unit
class TestPackageCacheSweep:
    """Tests for the background cleanup task."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        cache = PackageCache(cleanup_interval=60)

        cache.start_cleanup()
        assert cache.cleanup_running is True

        cache.start_cleanup()  # no-op while running
        assert cache.cleanup_running is True

        await cache.stop_cleanup()
        assert cache.cleanup_running is False

        await cache.stop_cleanup()

    @pytest.mark.asyncio
    async def test_sweep_runs_periodically(self, clock: FakeClock) -> None:
        cache = PackageCache(ttl=1, cleanup_interval=0.01, clock=clock)
        cache.set("a", "npm", _ok("a"))
        clock.advance(5)

        cache.start_cleanup()
        try:
            for _ in range(100):
                if len(cache) == 0:
                    break
                await asyncio.sleep(0.01)
        finally:
            await cache.close()

        assert len(cache) == 0

    def test_start_requires_running_loop(self) -> None:
        cache = PackageCache()
        with pytest.raises(RuntimeError):
            cache.start_cleanup()
