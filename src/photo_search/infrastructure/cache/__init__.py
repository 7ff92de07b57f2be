"""
Cache Infrastructure

Provides the bounded result-page cache.
"""

from __future__ import annotations

from photo_search.infrastructure.cache.page_cache import (
    CacheStats,
    EvictionPolicy,
    PageCache,
)

__all__ = [
    "CacheStats",
    "EvictionPolicy",
    "PageCache",
]
