"""
Search metrics tracking.

Counts searches, response time and cache hits, keeps the last N searches,
and persists everything to Storage after every change. Stored values are
loaded field by field on startup; anything missing or unreadable falls
back to its default.
"""

from __future__ import annotations

import json
import logging
import math
from collections import Counter
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar

from photo_search.domain.entities.metrics import (
    NO_POPULAR_QUERY,
    HistoryEntry,
    SearchAnalytics,
    SearchMetrics,
)
from photo_search.shared.exceptions import StorageCorruptionError

if TYPE_CHECKING:
    from collections.abc import Callable

    from photo_search.application.search.ports import Storage

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Storage keys (shared with the browser front end)
KEY_TOTAL_SEARCHES = "totalSearches"
KEY_TOTAL_RESPONSE_TIME = "totalResponseTime"
KEY_SEARCH_HISTORY = "searchHistory"
KEY_CACHE_HITS = "cacheHits"

DEFAULT_HISTORY_LIMIT = 10


def round_half_up(value: float) -> int:
    """Round non-negative values the way the analytics panel displays them."""
    return int(math.floor(value + 0.5))


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MetricsTracker:
    """
    Usage analytics for the search box.

    Example:
        tracker = MetricsTracker(MemoryStorage())
        tracker.record("cats", 182.4)
        tracker.snapshot().avg_response_time_ms  # 182
    """

    def __init__(
        self,
        storage: Storage,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize tracker and load persisted values.

        Args:
            storage: Key/value store; this tracker is its only writer of metric keys
            history_limit: Number of recent searches kept
            clock: Source of history timestamps
        """
        if history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {history_limit}")
        self._storage = storage
        self._history_limit = history_limit
        self._clock = clock
        self._metrics = SearchMetrics()
        self._load()

    @property
    def metrics(self) -> SearchMetrics:
        """Copy of the current counters."""
        return SearchMetrics(
            total_searches=self._metrics.total_searches,
            total_response_time_ms=self._metrics.total_response_time_ms,
            cache_hits=self._metrics.cache_hits,
            history=list(self._metrics.history),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record(self, query: str, response_time_ms: float) -> HistoryEntry:
        """
        Record a completed search (network or cache).

        Args:
            query: Search text
            response_time_ms: Wall-clock time of the search

        Returns:
            The history entry added
        """
        elapsed = max(0.0, float(response_time_ms))
        entry = HistoryEntry(
            query=query,
            timestamp=self._clock().isoformat(),
            response_time_ms=round_half_up(elapsed),
        )
        self._metrics.total_searches += 1
        self._metrics.total_response_time_ms += elapsed
        self._metrics.history.insert(0, entry)
        del self._metrics.history[self._history_limit:]
        self._save()
        return entry

    def record_cache_hit(self) -> None:
        """Count a cache hit. The search itself is recorded via ``record``."""
        self._metrics.cache_hits += 1
        self._save()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def snapshot(self) -> SearchAnalytics:
        """Derived analytics for display."""
        m = self._metrics
        if m.total_searches > 0:
            avg = round_half_up(m.total_response_time_ms / m.total_searches)
            hit_rate = round_half_up(m.cache_hits / m.total_searches * 100)
        else:
            avg = 0
            hit_rate = 0
        return SearchAnalytics(
            total_searches=m.total_searches,
            avg_response_time_ms=avg,
            cache_hit_rate_percent=hit_rate,
            most_frequent_query=self.most_frequent_query(),
            recent_history=tuple(m.history),
        )

    def most_frequent_query(self) -> str:
        """Most common query in history; ties go to the first one seen."""
        counts = Counter(entry.query for entry in self._metrics.history)
        best = NO_POPULAR_QUERY
        best_count = 0
        # Counter keeps first-seen order, so a strict ">" keeps the earliest on ties
        for query, count in counts.items():
            if count > best_count:
                best, best_count = query, count
        return best

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _save(self) -> None:
        m = self._metrics
        self._storage.set_string(KEY_TOTAL_SEARCHES, str(m.total_searches))
        self._storage.set_string(KEY_TOTAL_RESPONSE_TIME, repr(m.total_response_time_ms))
        self._storage.set_string(
            KEY_SEARCH_HISTORY,
            json.dumps([entry.to_dict() for entry in m.history], ensure_ascii=False),
        )
        self._storage.set_string(KEY_CACHE_HITS, str(m.cache_hits))

    def _load(self) -> None:
        """Load each field independently, defaulting on absence or corruption."""
        m = self._metrics
        m.total_searches = self._load_field(KEY_TOTAL_SEARCHES, _decode_count, 0)
        m.total_response_time_ms = self._load_field(KEY_TOTAL_RESPONSE_TIME, _decode_duration, 0.0)
        m.history = self._load_field(KEY_SEARCH_HISTORY, _decode_history, [])[: self._history_limit]
        m.cache_hits = min(self._load_field(KEY_CACHE_HITS, _decode_count, 0), m.total_searches)

    def _load_field(self, key: str, decode: Callable[[str, str], T], default: T) -> T:
        raw = self._storage.get_string(key)
        if raw is None or raw == "":
            return default
        try:
            return decode(key, raw)
        except StorageCorruptionError as e:
            logger.warning(f"{e}; using default")
            return default


# =============================================================================
# Decoders
# =============================================================================

def _decode_count(key: str, raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        raise StorageCorruptionError(key, raw, "not an integer") from None
    if value < 0:
        raise StorageCorruptionError(key, raw, "negative count")
    return value


def _decode_duration(key: str, raw: str) -> float:
    try:
        value = float(raw.strip())
    except ValueError:
        raise StorageCorruptionError(key, raw, "not a number") from None
    if not math.isfinite(value) or value < 0:
        raise StorageCorruptionError(key, raw, "not a finite non-negative number")
    return value


def _decode_history(key: str, raw: str) -> list[HistoryEntry]:
    try:
        data = json.loads(raw)
    except ValueError:
        raise StorageCorruptionError(key, raw, "invalid JSON") from None
    if not isinstance(data, list):
        raise StorageCorruptionError(key, raw, "not a JSON array")

    history: list[HistoryEntry] = []
    for item in data:
        if not isinstance(item, dict):
            logger.warning(f"Dropping malformed history entry: {item!r}")
            continue
        try:
            history.append(HistoryEntry.from_dict(item))
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Dropping malformed history entry {item!r}: {e}")
    return history
