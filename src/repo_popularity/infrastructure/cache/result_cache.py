"""
Result Cache

In-memory cache with TTL for ranked search results, keyed by
(date, language) exactly as the caller supplies them.
Uses cachetools.TTLCache for LRU eviction and TTL expiration.

Features:
- Time-based expiration (TTL) via cachetools
- LRU eviction when max size reached
- Single-flight per key: concurrent misses on one key share one computation
- No cross-key blocking: every key has its own lock
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from cachetools import TTLCache

from repo_popularity.domain.entities import RankedRepository

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]

_MISSING = object()


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    computations: int = 0

    @property
    def total_requests(self) -> int:
        """Total cache requests."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        """Reset statistics."""
        self.hits = 0
        self.misses = 0
        self.computations = 0


class ResultCache:
    """
    Memoizes ranked results per (date, language).

    Example:
        cache = ResultCache(max_size=1000, ttl=600)

        ranked = await cache.get_or_compute(
            "2024-01-01",
            "python",
            lambda: pipeline.aggregate("2024-01-01", "python"),
        )
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 600.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries
            ttl: Time-to-live in seconds
            timer: Clock used for expiry (injectable for tests)
        """
        self._cache: TTLCache[CacheKey, tuple[RankedRepository, ...]] = TTLCache(
            maxsize=max_size, ttl=ttl, timer=timer
        )
        self._locks: dict[CacheKey, asyncio.Lock] = {}
        # callers holding or queued on each key's lock
        self._lock_users: dict[CacheKey, int] = {}
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    def get(self, date: str, language: str) -> tuple[RankedRepository, ...] | None:
        """
        Get a cached ranking.

        Returns:
            Cached value or None if not found/expired
        """
        value = self._cache.get((date, language), _MISSING)
        if value is _MISSING:
            self._stats.misses += 1
            return None
        self._stats.hits += 1
        return value

    async def get_or_compute(
        self,
        date: str,
        language: str,
        compute_fn: Callable[[], Awaitable[Sequence[RankedRepository]]],
    ) -> tuple[RankedRepository, ...]:
        """
        Get from cache or compute, store and return the result.

        Concurrent callers missing on the same key wait for the first one's
        computation and then read its stored result. A failing ``compute_fn``
        stores nothing and its exception propagates.

        Args:
            date: Cutoff date, used verbatim as part of the key
            language: Language, used verbatim as part of the key
            compute_fn: Async function producing the ranking on a miss

        Returns:
            Cached or freshly computed ranking
        """
        key = (date, language)

        value = self.get(date, language)
        if value is not None:
            logger.debug(f"Cache hit: {key}")
            return value

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                # Double-check after acquiring lock
                value = self._cache.get(key, _MISSING)
                if value is not _MISSING:
                    logger.debug(f"Cache hit after wait: {key}")
                    return value

                logger.debug(f"Cache miss, computing: {key}")
                self._stats.computations += 1
                result = tuple(await compute_fn())
                self._cache[key] = result
                return result
        finally:
            # A released lock may still have queued waiters; keep it until the last one leaves
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    def invalidate(self, date: str, language: str) -> bool:
        """
        Invalidate cache entry.

        Returns:
            True if entry was removed
        """
        try:
            del self._cache[(date, language)]
            return True
        except KeyError:
            return False

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        count = len(self._cache)
        self._cache.clear()
        return count

    def to_dict(self) -> dict[str, float | int]:
        """Snapshot for health reporting."""
        return {
            "entries": len(self._cache),
            "max_size": int(self._cache.maxsize),
            "ttl_seconds": float(self._cache.ttl),
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "hit_rate": round(self._stats.hit_rate, 3),
        }

    def __len__(self) -> int:
        """Get number of cached entries."""
        return len(self._cache)

    def __contains__(self, key: CacheKey) -> bool:
        """Check if (date, language) is cached and not expired."""
        return key in self._cache
