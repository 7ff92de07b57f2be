"""
Domain Entity: Search metrics

Counters and bounded history of past searches, and the read-only
analytics snapshot derived from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

NO_POPULAR_QUERY = "none"


@dataclass(frozen=True)
class HistoryEntry:
    """A single past search."""

    query: str
    timestamp: str  # ISO 8601
    response_time_ms: int

    def to_dict(self) -> dict[str, Any]:
        """Persisted form (keys match what the browser front end stored)."""
        return {
            "query": self.query,
            "timestamp": self.timestamp,
            "responseTime": self.response_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """
        Parse a persisted entry.

        Raises:
            ValueError / TypeError: entry is not usable
        """
        query = data["query"]
        if not isinstance(query, str):
            raise TypeError(f"query must be a string, got {type(query).__name__}")
        timestamp = data.get("timestamp", "")
        if not isinstance(timestamp, str):
            raise TypeError("timestamp must be a string")
        response_time = data.get("responseTime", 0)
        if isinstance(response_time, bool) or not isinstance(response_time, (int, float)):
            raise TypeError("responseTime must be a number")
        return cls(query=query, timestamp=timestamp, response_time_ms=max(0, round(response_time)))


@dataclass
class SearchMetrics:
    """Mutable counters owned by MetricsTracker."""

    total_searches: int = 0
    total_response_time_ms: float = 0.0
    cache_hits: int = 0
    history: list[HistoryEntry] = field(default_factory=list)


@dataclass(frozen=True)
class SearchAnalytics:
    """Snapshot shown by the analytics panel."""

    total_searches: int
    avg_response_time_ms: int
    cache_hit_rate_percent: int
    most_frequent_query: str
    recent_history: tuple[HistoryEntry, ...]
