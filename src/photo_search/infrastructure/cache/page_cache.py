"""
Page Cache

Bounded in-memory cache of result pages keyed by search cache key.
Uses cachetools.FIFOCache by default: when full, the oldest *inserted*
page is evicted even if it was read recently. cachetools.LRUCache can be
selected instead for access-order eviction.

Features:
- Bounded size, oldest evicted first
- Optional LRU policy
- Hit / miss / eviction statistics
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from cachetools import Cache, FIFOCache, LRUCache

from photo_search.domain.entities.image import ResultPage
from photo_search.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

EvictionPolicy = Literal["fifo", "lru"]

DEFAULT_CAPACITY = 20


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0

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
        self.evictions = 0


class PageCache:
    """
    Bounded key -> ResultPage cache.

    Example:
        cache = PageCache(capacity=20)
        cache.put(query.cache_key, page)
        page = cache.get(query.cache_key)  # None on miss
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        policy: EvictionPolicy = "fifo",
    ):
        """
        Initialize cache.

        Args:
            capacity: Maximum number of pages kept
            policy: "fifo" (insertion order, default) or "lru" (access order)
        """
        if capacity < 1:
            raise ConfigurationError(f"Cache capacity must be >= 1, got {capacity}")
        if policy == "fifo":
            self._cache: Cache[str, ResultPage] = FIFOCache(maxsize=capacity)
        elif policy == "lru":
            self._cache = LRUCache(maxsize=capacity)
        else:
            raise ConfigurationError(f"Unknown cache policy: {policy!r} (expected 'fifo' or 'lru')")
        self._capacity = capacity
        self._policy: EvictionPolicy = policy
        self._stats = CacheStats()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    def get(self, key: str) -> ResultPage | None:
        """
        Look up a page.

        Args:
            key: Cache key

        Returns:
            Cached page or None if absent
        """
        page = self._cache.get(key)
        if page is None:
            self._stats.misses += 1
            return None
        self._stats.hits += 1
        return page

    def put(self, key: str, page: ResultPage) -> None:
        """
        Store a page, evicting the oldest entry when full.

        Re-putting an existing key replaces its page and, under either
        policy, moves the key to the back of the eviction order.

        Args:
            key: Cache key
            page: Page to cache
        """
        if key not in self._cache and len(self._cache) >= self._capacity:
            self._stats.evictions += 1
        self._cache[key] = page
        logger.debug(f"Cached page {page.requested_page} ({len(self._cache)}/{self._capacity})")

    def invalidate(self, key: str) -> bool:
        """
        Remove one entry.

        Returns:
            True if entry was removed
        """
        try:
            del self._cache[key]
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

    def keys(self) -> list[str]:
        """Currently cached keys."""
        return list(self._cache.keys())

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache
