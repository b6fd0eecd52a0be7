"""In-memory cache for registry lookups.

Stores one :class:`~depscout.models.PackageVersionInfo` per
``(manager, lower-cased name)`` key. Successful lookups live for
``ttl`` seconds; failed lookups live for the shorter ``error_ttl`` so a
flaky registry is retried sooner without being hammered on every request.

Expiry is checked lazily on :meth:`PackageCache.get` and swept
periodically by an optional asyncio background task. When the cache grows
past ``max_size`` the oldest entries (by insertion timestamp) are evicted.

The cache is an ordinary object: construct one per process (the CLI does
so at startup) and pass it to :class:`~depscout.core.registry.RegistryService`.

Typical usage::

    cache = PackageCache(max_size=200)
    cache.set("lodash", "npm", PackageVersionInfo("lodash", "4.17.21"))
    cache.get("Lodash", "npm")      # -> PackageVersionInfo(...)
"""

from __future__ import annotations

import time
import asyncio
import contextlib
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from depscout.models import PackageVersionInfo
from depscout.utils.logger import get_logger
from depscout.constants import (
    DEFAULT_CACHE_CLEANUP_INTERVAL,
    DEFAULT_CACHE_ERROR_TTL,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_CACHE_TTL,
)

logger = get_logger("cache")

__all__ = ["CacheEntry", "CacheStats", "PackageCache"]


@dataclass
class CacheEntry:
    """A cached lookup and its lifetime, in clock seconds."""

    data: PackageVersionInfo
    timestamp: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time view of cache contents."""

    total_entries: int
    valid_entries: int
    expired_entries: int
    error_entries: int
    success_entries: int
    max_size: int


class PackageCache:
    """Bounded TTL cache for :class:`PackageVersionInfo` results.

    Args:
        max_size: Maximum number of entries kept after any insert.
        ttl: Lifetime of successful lookups, in seconds.
        error_ttl: Lifetime of failed lookups, in seconds.
        cleanup_interval: Period of the background sweep, in seconds.
        clock: Time source returning seconds; injectable for tests.
    """

    def __init__(
        self,
        *,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        ttl: float = DEFAULT_CACHE_TTL,
        error_ttl: float = DEFAULT_CACHE_ERROR_TTL,
        cleanup_interval: float = DEFAULT_CACHE_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self.ttl = ttl
        self.error_ttl = error_ttl
        self.cleanup_interval = cleanup_interval
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._cleanup_task: Optional["asyncio.Task[None]"] = None

    # ------------------------------------------------------------------
    # Keying
    # ------------------------------------------------------------------

    @staticmethod
    def make_key(package_name: str, package_manager: str) -> str:
        """Build the cache key, e.g. ``"npm:lodash"``."""
        return f"{package_manager}:{package_name.lower()}"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def get(self, package_name: str, package_manager: str) -> Optional[PackageVersionInfo]:
        """Return the cached lookup, or ``None`` on a miss.

        An expired entry counts as a miss and is evicted on the spot.
        """
        key = self.make_key(package_name, package_manager)
        entry = self._entries.get(key)

        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return None

        return entry.data

    def set(
        self,
        package_name: str,
        package_manager: str,
        data: PackageVersionInfo,
    ) -> None:
        """Store ``data``, choosing the TTL from whether it carries an error."""
        key = self.make_key(package_name, package_manager)
        now = self._clock()
        ttl = self.error_ttl if data.error else self.ttl

        self._entries[key] = CacheEntry(data=data, timestamp=now, expires_at=now + ttl)
        self._enforce_size_limit()

    def delete(self, package_name: str, package_manager: str) -> bool:
        """Remove one entry; returns whether it existed."""
        key = self.make_key(package_name, package_manager)
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def stats(self) -> CacheStats:
        now = self._clock()
        valid = expired = errors = successes = 0

        for entry in self._entries.values():
            if entry.is_expired(now):
                expired += 1
                continue
            valid += 1
            if entry.data.error:
                errors += 1
            else:
                successes += 1

        return CacheStats(
            total_entries=len(self._entries),
            valid_entries=valid,
            expired_entries=expired,
            error_entries=errors,
            success_entries=successes,
            max_size=self.max_size,
        )

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def cleanup(self) -> int:
        """Remove every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]

        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug("Cleaned up %d expired cache entries", len(expired))
        return len(expired)

    def _enforce_size_limit(self) -> None:
        overflow = len(self._entries) - self.max_size
        if overflow <= 0:
            return

        # sorted() is stable, so equal timestamps fall back to insertion order
        oldest = sorted(self._entries.items(), key=lambda item: item[1].timestamp)
        for key, _ in oldest[:overflow]:
            del self._entries[key]

        logger.debug("Evicted %d oldest cache entries to stay within %d", overflow, self.max_size)

    # ------------------------------------------------------------------
    # Background sweep lifecycle
    # ------------------------------------------------------------------

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start_cleanup(self) -> None:
        """Start the periodic sweep on the running event loop.

        Calling this while a sweep is already running is a no-op.
        """
        if self.cleanup_running:
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(
            self._cleanup_loop(), name="depscout-cache-cleanup"
        )

    async def stop_cleanup(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def close(self) -> None:
        """Stop the sweep and drop all entries (test teardown hook)."""
        await self.stop_cleanup()
        self.clear()

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.cleanup()
