"""
Domain Entities

Core business objects for photo search.
"""

from .image import ImageResult, ResultPage
from .metrics import NO_POPULAR_QUERY, HistoryEntry, SearchAnalytics, SearchMetrics
from .query import Color, Orientation, OrderBy, SearchFilters, SearchQuery, make_cache_key

__all__ = [
    # Query
    "Color",
    "Orientation",
    "OrderBy",
    "SearchFilters",
    "SearchQuery",
    "make_cache_key",
    # Results
    "ImageResult",
    "ResultPage",
    # Metrics
    "HistoryEntry",
    "SearchMetrics",
    "SearchAnalytics",
    "NO_POPULAR_QUERY",
]
