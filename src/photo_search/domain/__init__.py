"""
Domain Layer - Photo search entities.

Pure data objects with no I/O.
"""

from .entities import (
    Color,
    HistoryEntry,
    ImageResult,
    Orientation,
    OrderBy,
    ResultPage,
    SearchAnalytics,
    SearchFilters,
    SearchMetrics,
    SearchQuery,
    make_cache_key,
)

__all__ = [
    "Color",
    "HistoryEntry",
    "ImageResult",
    "Orientation",
    "OrderBy",
    "ResultPage",
    "SearchAnalytics",
    "SearchFilters",
    "SearchMetrics",
    "SearchQuery",
    "make_cache_key",
]
