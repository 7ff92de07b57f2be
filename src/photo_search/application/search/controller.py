"""
Application Service: Query Controller

Turns search-box activity into cached, paginated photo searches.

Responsibilities:
- Debounce typed input; fire immediately on submit
- Look up pages in the PageCache before going to the network
- Track query / page / filter / loading state for one search session
- Drive the Renderer and record analytics through MetricsTracker
- Drop responses that arrive after their request was superseded

Architecture:
    UI shell → QueryController (here) → PageCache / UnsplashClient → Fetcher
    ResultPage entities flow back to the Renderer.

Everything runs on one asyncio event loop; the only suspension points are
the debounce sleep and the HTTP fetch, so state is never touched
concurrently.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from photo_search.domain.entities.query import SearchFilters, make_cache_key
from photo_search.shared.async_utils import Debouncer
from photo_search.shared.exceptions import PhotoSearchError

if TYPE_CHECKING:
    import asyncio

    from photo_search.application.search.metrics import MetricsTracker
    from photo_search.application.search.ports import Renderer, Storage
    from photo_search.domain.entities.image import ImageResult, ResultPage
    from photo_search.infrastructure.cache.page_cache import PageCache
    from photo_search.infrastructure.sources.unsplash import UnsplashClient

logger = logging.getLogger(__name__)

KEY_LAST_QUERY = "lastQuery"

DEFAULT_DEBOUNCE_DELAY = 0.3  # seconds
DEFAULT_MIN_QUERY_LENGTH = 2


class SearchPhase(str, Enum):
    """Where the controller is in the search lifecycle."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    LOADING = "loading"
    DISPLAYING = "displaying"
    ERROR = "error"


@dataclass
class ControllerState:
    """Mutable state of the single active search session."""

    current_query: str = ""
    current_page: int = 1
    is_loading: bool = False
    has_more: bool = False
    filters: SearchFilters = field(default_factory=SearchFilters)
    phase: SearchPhase = SearchPhase.IDLE
    error_message: str | None = None
    # Bumped per request and on clear; responses carrying an older value are stale
    generation: int = 0
    displayed: list[ImageResult] = field(default_factory=list)


class QueryController:
    """
    Search request / cache / pagination controller.

    Example:
        controller = QueryController(client, cache, metrics, renderer, storage)
        controller.on_input("ca")      # debounced
        await controller.submit("cats")  # immediate
        await controller.load_more()     # page 2, appended
    """

    def __init__(
        self,
        client: UnsplashClient,
        cache: PageCache,
        metrics: MetricsTracker,
        renderer: Renderer,
        storage: Storage,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
        min_query_length: int = DEFAULT_MIN_QUERY_LENGTH,
        supersede_in_flight: bool = False,
    ) -> None:
        """
        Initialize controller.

        Args:
            client: Photo API client (owns URL building and page size)
            cache: Result page cache (shared, not owned)
            metrics: Analytics tracker (shared, not owned)
            renderer: UI callbacks
            storage: Key/value store, used here for the last query only
            debounce_delay: Quiet period before typed input triggers a search
            min_query_length: Shortest trimmed input that triggers a typed search
            supersede_in_flight: Let a new search replace one still loading
                instead of being ignored
        """
        self._client = client
        self._cache = cache
        self._metrics = metrics
        self._renderer = renderer
        self._storage = storage
        self._min_query_length = min_query_length
        self._supersede_in_flight = supersede_in_flight
        self._debouncer = Debouncer(debounce_delay)
        self._state = ControllerState()
        self._last_query = storage.get_string(KEY_LAST_QUERY) or ""

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def per_page(self) -> int:
        return self._client.per_page

    @property
    def last_query(self) -> str:
        """Query persisted by a previous session, for pre-filling the search box."""
        return self._last_query

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def on_input(self, text: str) -> asyncio.Task[Any] | None:
        """
        Handle a text-input event.

        Restarts the debounce timer. Empty input clears results at once;
        input shorter than the minimum length schedules nothing.

        Returns:
            The debounce task when a search was scheduled
        """
        query = text.strip()
        self._debouncer.cancel()

        if len(query) >= self._min_query_length:
            self._state.phase = SearchPhase.DEBOUNCING
            return self._debouncer.call(lambda: self.perform_search(query, is_new_search=True))

        if not query:
            self.clear_results()
        elif self._state.phase is SearchPhase.DEBOUNCING:
            self._state.phase = self._resting_phase()
        return None

    async def submit(self, text: str) -> ResultPage | None:
        """Search immediately (form submit / search button), bypassing the debounce."""
        self._debouncer.cancel()
        query = text.strip()
        if not query:
            if self._state.phase is SearchPhase.DEBOUNCING:
                self._state.phase = self._resting_phase()
            return None
        return await self.perform_search(query, is_new_search=True)

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    async def perform_search(self, query: str, is_new_search: bool = True) -> ResultPage | None:
        """
        Run one search for the current page.

        Args:
            query: Search text
            is_new_search: Start over at page 1 and replace displayed results;
                otherwise append the current page

        Returns:
            The page shown, or None if the call was ignored, failed or went stale
        """
        state = self._state
        if state.is_loading:
            if not (is_new_search and self._supersede_in_flight):
                logger.debug(f"Search for {query!r} ignored: a request is in flight")
                if state.phase is SearchPhase.DEBOUNCING and not self._debouncer.pending:
                    state.phase = SearchPhase.LOADING
                return None
            logger.info(f"Superseding in-flight request with {query!r}")

        started = time.perf_counter()

        if is_new_search:
            state.current_query = query
            state.current_page = 1
            state.has_more = True
            state.displayed.clear()
            self._renderer.clear_results()
            self._remember_query(query)

        state.generation += 1
        generation = state.generation
        state.error_message = None
        state.phase = SearchPhase.LOADING
        self._set_loading(True)

        page_number = state.current_page
        filters = state.filters
        key = make_cache_key(query, page_number, filters)

        try:
            self._renderer.hide_error()
            cached = self._cache.get(key)
            if cached is not None:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.debug(f"Cache hit for {query!r} page {page_number}")
                self._show_page(cached, is_new_search)
                self._renderer.update_stats(cached.total_available, elapsed_ms, True)
                self._record_metrics(query, elapsed_ms, from_cache=True)
                return cached

            logger.debug(f"Cache miss for {query!r} page {page_number}")
            try:
                page = await self._client.search(query, page_number, filters)
            except PhotoSearchError as e:
                if self._is_stale(generation):
                    logger.debug(f"Dropping stale failure for {query!r}: {e}")
                    return None
                logger.error(f"Search failed for {query!r} page {page_number}: {e}")
                self._fail(str(e))
                return None
            except Exception as e:
                if self._is_stale(generation):
                    logger.debug(f"Dropping stale failure for {query!r}: {e}")
                    return None
                logger.exception(f"Unexpected search error for {query!r}")
                self._fail(f"Search failed: {e}")
                return None

            self._cache.put(key, page)
            if self._is_stale(generation):
                logger.debug(f"Dropping stale response for {query!r} page {page_number}")
                return None
            elapsed_ms = (time.perf_counter() - started) * 1000
            self._show_page(page, is_new_search)
            self._renderer.update_stats(page.total_available, elapsed_ms, False)
            self._record_metrics(query, elapsed_ms, from_cache=False)
            return page
        finally:
            if not self._is_stale(generation):
                self._set_loading(False)
                if state.phase is SearchPhase.LOADING:
                    # Cancelled or interrupted mid-request
                    state.phase = self._resting_phase()

    async def load_more(self) -> ResultPage | None:
        """Fetch the next page and append it. No-op unless more results are expected."""
        state = self._state
        if not (state.has_more and not state.is_loading and state.current_query):
            return None

        state.current_page += 1
        request_generation = state.generation + 1
        page = await self.perform_search(state.current_query, is_new_search=False)
        if page is None and state.generation == request_generation and state.error_message is not None:
            # Let the next load_more ask for the same page again
            state.current_page = max(1, state.current_page - 1)
        return page

    async def retry(self) -> ResultPage | None:
        """Re-run the current query from page 1 (cache is still consulted)."""
        if not self._state.current_query:
            return None
        return await self.perform_search(self._state.current_query, is_new_search=True)

    async def apply_filters(self, filters: SearchFilters | Mapping[str, Any] | None) -> ResultPage | None:
        """
        Replace the filter selection and restart the active query from page 1.

        Raises:
            InvalidParameterError: a filter value is not supported
        """
        if not isinstance(filters, SearchFilters):
            filters = SearchFilters.from_mapping(filters)
        self._state.filters = filters
        if not self._state.current_query:
            return None
        return await self.perform_search(self._state.current_query, is_new_search=True)

    async def clear_filters(self) -> ResultPage | None:
        """Reset every filter to its default."""
        return await self.apply_filters(SearchFilters())

    def clear_results(self) -> None:
        """
        Cancel pending input, invalidate any in-flight request and reset state.

        Filters are kept.
        """
        self._debouncer.cancel()
        state = self._state
        state.generation += 1
        if state.is_loading:
            self._set_loading(False)
        state.current_query = ""
        state.current_page = 1
        state.has_more = False
        state.error_message = None
        state.displayed.clear()
        state.phase = SearchPhase.IDLE
        self._renderer.clear_results()
        self._renderer.hide_error()
        self._renderer.update_load_more(False)

    async def wait_idle(self) -> None:
        """Wait for the pending debounce timer and any search it started."""
        await self._debouncer.wait()

    async def aclose(self) -> None:
        """Cancel pending input; in-flight work is left to finish."""
        self._debouncer.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_stale(self, generation: int) -> bool:
        return generation != self._state.generation

    def _set_loading(self, is_loading: bool) -> None:
        self._state.is_loading = is_loading
        self._renderer.set_loading_state(is_loading)

    def _show_page(self, page: ResultPage, is_new_search: bool) -> None:
        state = self._state
        # Exact-page-size heuristic: a full page suggests there is another one
        state.has_more = len(page.items) == self.per_page
        if page.is_empty and is_new_search:
            self._renderer.show_no_results()
        else:
            state.displayed.extend(page.items)
            self._renderer.display_results(page, is_new_search)
        self._renderer.update_load_more(state.has_more and bool(state.current_query))
        state.phase = self._unless_debouncing(SearchPhase.DISPLAYING)

    def _fail(self, message: str) -> None:
        self._state.error_message = message
        self._state.phase = self._unless_debouncing(SearchPhase.ERROR)
        self._renderer.show_error(message)

    def _record_metrics(self, query: str, elapsed_ms: float, from_cache: bool) -> None:
        """Update analytics; a storage failure must not break the search."""
        try:
            if from_cache:
                self._metrics.record_cache_hit()
            self._metrics.record(query, elapsed_ms)
        except Exception as e:
            logger.warning(f"Failed to record search metrics: {e}")

    def _remember_query(self, query: str) -> None:
        self._last_query = query
        try:
            self._storage.set_string(KEY_LAST_QUERY, query)
        except Exception as e:
            logger.warning(f"Failed to save last query: {e}")

    def _unless_debouncing(self, phase: SearchPhase) -> SearchPhase:
        # Input typed during a request keeps its pending timer visible
        return SearchPhase.DEBOUNCING if self._debouncer.pending else phase

    def _resting_phase(self) -> SearchPhase:
        if self._state.error_message:
            return self._unless_debouncing(SearchPhase.ERROR)
        if self._state.current_query:
            return self._unless_debouncing(SearchPhase.DISPLAYING)
        return self._unless_debouncing(SearchPhase.IDLE)
