"""
Tests for QueryController.

Covers debouncing, caching, pagination, error handling, stale responses
and filter changes, driving a mock renderer with a scripted fetcher.
"""

import asyncio
import logging
from unittest.mock import ANY

import pytest

from photo_search.application.search.controller import (
    KEY_LAST_QUERY,
    QueryController,
    SearchPhase,
)
from photo_search.application.search.metrics import MetricsTracker
from photo_search.application.search.ports import FetchResponse
from photo_search.domain.entities.query import Orientation, SearchFilters
from photo_search.infrastructure.sources.unsplash import UnsplashClient
from photo_search.infrastructure.storage import MemoryStorage
from photo_search.shared.exceptions import InvalidParameterError, MalformedResponseError

from conftest import make_search_body


async def _until(predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


# ============================================================
# Input handling
# ============================================================


class TestInput:
    async def test_rapid_typing_triggers_one_search(self, controller, fetcher):
        controller.on_input("a")
        controller.on_input("ab")
        controller.on_input("abc")
        assert controller.state.phase is SearchPhase.DEBOUNCING

        await controller.wait_idle()

        assert fetcher.calls == 1
        assert "query=abc&page=1&per_page=20" in fetcher.urls[0]
        assert controller.state.current_query == "abc"
        assert controller.state.phase is SearchPhase.DISPLAYING

    async def test_short_input_schedules_nothing(self, controller, fetcher):
        assert controller.on_input("a") is None
        await controller.wait_idle()
        assert fetcher.calls == 0
        assert controller.state.phase is SearchPhase.IDLE

    async def test_shortening_below_minimum_cancels_pending(self, controller, fetcher):
        controller.on_input("ab")
        controller.on_input("a")
        await controller.wait_idle()
        assert fetcher.calls == 0
        assert controller.state.phase is SearchPhase.IDLE

    async def test_input_is_trimmed(self, controller, fetcher):
        controller.on_input("  cats  ")
        await controller.wait_idle()
        assert "query=cats&" in fetcher.urls[0]

    async def test_empty_input_clears_results(self, controller, renderer):
        await controller.submit("cats")
        renderer.reset_mock()

        controller.on_input("   ")

        renderer.clear_results.assert_called_once()
        renderer.update_load_more.assert_called_with(False)
        assert controller.state.current_query == ""
        assert controller.state.displayed == []
        assert controller.state.phase is SearchPhase.IDLE

    async def test_submit_bypasses_debounce(self, controller, fetcher):
        controller.on_input("ca")
        page = await controller.submit("cats")
        await controller.wait_idle()

        assert page is not None
        assert fetcher.calls == 1
        assert "query=cats" in fetcher.urls[0]

    async def test_submit_empty_is_noop(self, controller, fetcher):
        assert await controller.submit("  ") is None
        assert fetcher.calls == 0

    async def test_typing_during_request_stays_debouncing(
        self, client, cache, metrics, renderer, storage, fetcher
    ):
        controller = QueryController(client, cache, metrics, renderer, storage, debounce_delay=0.2)
        fetcher.gate = asyncio.Event()
        task = asyncio.create_task(controller.submit("cats"))
        await _until(lambda: fetcher.calls == 1)

        controller.on_input("dogs")
        fetcher.gate.set()
        assert await task is not None
        assert controller.state.phase is SearchPhase.DEBOUNCING

        await controller.wait_idle()
        assert fetcher.calls == 2
        assert controller.state.current_query == "dogs"
        assert controller.state.phase is SearchPhase.DISPLAYING


# ============================================================
# Searching and caching
# ============================================================


class TestSearch:
    async def test_new_search_renders_page(self, controller, renderer, metrics):
        page = await controller.submit("cats")

        assert len(page) == 20
        renderer.display_results.assert_called_once_with(page, True)
        renderer.update_stats.assert_called_once_with(1000, ANY, False)
        renderer.update_load_more.assert_called_with(True)
        renderer.set_loading_state.assert_called_with(False)

        names = [c[0] for c in renderer.method_calls]
        assert names.index("clear_results") < names.index("display_results")

        state = controller.state
        assert state.has_more is True
        assert state.is_loading is False
        assert len(state.displayed) == 20
        assert metrics.snapshot().total_searches == 1
        assert metrics.snapshot().recent_history[0].query == "cats"

    async def test_cache_hit_skips_network(self, controller, fetcher, renderer, metrics):
        first = await controller.submit("cats")
        second = await controller.submit("cats")

        assert fetcher.calls == 1
        assert second is first
        assert renderer.update_stats.call_args.args == (1000, ANY, True)
        snap = metrics.snapshot()
        assert snap.total_searches == 2
        assert snap.cache_hit_rate_percent == 50

    async def test_partial_page_has_no_more(self, controller, fetcher, renderer):
        fetcher.respond_json(make_search_body(5, total=5))
        await controller.submit("rare thing")

        assert controller.state.has_more is False
        renderer.update_load_more.assert_called_with(False)

    async def test_empty_results(self, controller, fetcher, renderer):
        fetcher.respond_json({"total": 0, "total_pages": 0, "results": []})
        await controller.submit("zzzzqqqq")

        renderer.show_no_results.assert_called_once()
        renderer.display_results.assert_not_called()
        assert controller.state.has_more is False
        assert controller.state.phase is SearchPhase.DISPLAYING

    async def test_remembers_last_query(self, controller, storage):
        await controller.submit("cats")
        assert storage.get_string(KEY_LAST_QUERY) == "cats"
        assert controller.last_query == "cats"

    async def test_last_query_loaded_from_storage(self, client, cache, metrics, renderer):
        storage = MemoryStorage({KEY_LAST_QUERY: "sunset"})
        controller = QueryController(client, cache, metrics, renderer, storage)
        assert controller.last_query == "sunset"


# ============================================================
# Errors
# ============================================================


class TestErrors:
    async def test_server_error(self, controller, fetcher, renderer, cache, metrics):
        fetcher.respond_json(None, status=500, reason="Internal Server Error")
        result = await controller.submit("cats")

        assert result is None
        state = controller.state
        assert state.phase is SearchPhase.ERROR
        assert state.is_loading is False
        assert "HTTP 500" in state.error_message
        renderer.show_error.assert_called_once_with(state.error_message)
        renderer.set_loading_state.assert_called_with(False)
        assert len(cache) == 0
        assert metrics.snapshot().total_searches == 0

    async def test_unexpected_error(self, controller, fetcher):
        fetcher.respond(RuntimeError("boom"))
        await controller.submit("cats")
        assert controller.state.error_message == "Search failed: boom"
        assert controller.state.phase is SearchPhase.ERROR

    async def test_retry_after_error(self, controller, fetcher, renderer):
        fetcher.respond_json(None, status=503, reason="Service Unavailable")
        await controller.submit("cats")

        page = await controller.retry()

        assert page is not None
        assert fetcher.calls == 2
        assert controller.state.phase is SearchPhase.DISPLAYING
        assert controller.state.error_message is None
        renderer.hide_error.assert_called()

    async def test_retry_without_query(self, controller, fetcher):
        assert await controller.retry() is None
        assert fetcher.calls == 0

    @pytest.mark.parametrize(
        "response",
        [
            FetchResponse(status=200, json_body="not an object"),
            MalformedResponseError("Invalid JSON response", source="api.unsplash.com"),
        ],
    )
    async def test_malformed_response(self, controller, fetcher, renderer, cache, metrics, response):
        fetcher.respond(response)

        assert await controller.submit("cats") is None

        state = controller.state
        assert state.phase is SearchPhase.ERROR
        assert state.is_loading is False
        assert "Malformed response" in state.error_message
        renderer.show_error.assert_called_once_with(state.error_message)
        assert len(cache) == 0
        assert metrics.snapshot().total_searches == 0


class FailingStorage(MemoryStorage):
    """MemoryStorage whose writes raise once ``fail`` is set."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def set_string(self, key: str, value: str) -> None:
        if self.fail:
            raise OSError(f"No space left on device: {key}")
        super().set_string(key, value)


class TestStorageFailures:
    @pytest.fixture
    def failing_storage(self):
        return FailingStorage()

    @pytest.fixture
    def controller(self, client, cache, renderer, failing_storage):
        return QueryController(
            client,
            cache,
            MetricsTracker(failing_storage),
            renderer,
            failing_storage,
            debounce_delay=0.01,
        )

    async def test_cache_hit_survives_write_failure(self, controller, fetcher, failing_storage, caplog):
        await controller.submit("cats")
        failing_storage.fail = True

        with caplog.at_level(logging.WARNING):
            page = await controller.submit("cats")

        assert page is not None
        assert controller.state.is_loading is False
        assert controller.state.phase is SearchPhase.DISPLAYING
        assert "Failed to record search metrics" in caplog.text

        assert await controller.submit("dogs") is not None
        assert fetcher.calls == 2

    async def test_network_result_survives_write_failure(self, controller, renderer, failing_storage):
        failing_storage.fail = True

        page = await controller.submit("cats")

        assert page is not None
        renderer.display_results.assert_called_once_with(page, True)
        assert controller.state.is_loading is False
        assert controller.last_query == "cats"

    async def test_debounced_search_survives_write_failure(self, controller, fetcher, failing_storage):
        failing_storage.fail = True

        task = controller.on_input("cats")
        await controller.wait_idle()

        assert task.exception() is None
        assert task.result() is not None
        assert fetcher.calls == 1
        assert controller.state.is_loading is False


# ============================================================
# Pagination
# ============================================================


class TestLoadMore:
    async def test_appends_next_page(self, controller, fetcher, renderer):
        await controller.submit("cats")
        fetcher.respond_json(make_search_body(20, start=20))

        page = await controller.load_more()

        assert "page=2" in fetcher.urls[-1]
        assert controller.state.current_page == 2
        assert len(controller.state.displayed) == 40
        assert controller.state.displayed[20].id == "photo-20"
        renderer.display_results.assert_called_with(page, False)
        assert renderer.clear_results.call_count == 1

    async def test_noop_without_more(self, controller, fetcher):
        fetcher.respond_json(make_search_body(3, total=3))
        await controller.submit("cats")

        assert await controller.load_more() is None
        assert fetcher.calls == 1

    async def test_noop_without_query(self, controller, fetcher):
        assert await controller.load_more() is None
        assert fetcher.calls == 0

    async def test_failure_keeps_page_for_next_attempt(self, controller, fetcher):
        await controller.submit("cats")
        fetcher.respond_json(None, status=503, reason="Service Unavailable")

        assert await controller.load_more() is None
        assert controller.state.current_page == 1
        assert controller.state.phase is SearchPhase.ERROR
        assert len(controller.state.displayed) == 20

        await controller.load_more()
        assert "page=2" in fetcher.urls[-1]
        assert controller.state.current_page == 2

    async def test_partial_second_page_ends_pagination(self, controller, fetcher, renderer):
        await controller.submit("cats")
        fetcher.respond_json(make_search_body(7, start=20))

        await controller.load_more()

        assert controller.state.has_more is False
        renderer.update_load_more.assert_called_with(False)

    async def test_stale_page_does_not_roll_back_newer_search(self, controller, fetcher):
        await controller.submit("cats")
        gate = asyncio.Event()
        fetcher.gate = gate
        more = asyncio.create_task(controller.load_more())
        await _until(lambda: fetcher.calls == 2)

        controller.clear_results()
        fetcher.gate = None
        fetcher.respond_json(None, status=500, reason="Internal Server Error")
        assert await controller.submit("dogs") is None
        gate.set()

        assert await more is None
        state = controller.state
        assert state.current_query == "dogs"
        assert state.current_page == 1
        assert state.phase is SearchPhase.ERROR

        await controller.load_more()
        assert "query=dogs&page=2&" in fetcher.urls[-1]


# ============================================================
# Concurrency
# ============================================================


class TestInFlight:
    async def test_new_search_ignored_while_loading(self, controller, fetcher):
        fetcher.gate = asyncio.Event()
        first = asyncio.create_task(controller.submit("cats"))
        await _until(lambda: fetcher.calls == 1)

        assert await controller.submit("dogs") is None

        fetcher.gate.set()
        assert await first is not None
        assert fetcher.calls == 1
        assert controller.state.current_query == "cats"

    async def test_clear_drops_in_flight_response(self, controller, fetcher, renderer, cache, metrics):
        fetcher.gate = asyncio.Event()
        task = asyncio.create_task(controller.submit("cats"))
        await _until(lambda: fetcher.calls == 1)

        controller.clear_results()
        assert controller.state.is_loading is False
        fetcher.gate.set()

        assert await task is None
        renderer.display_results.assert_not_called()
        assert controller.state.current_query == ""
        assert controller.state.phase is SearchPhase.IDLE
        assert metrics.snapshot().total_searches == 0
        # Stale pages are still cached
        assert len(cache) == 1

    async def test_clear_cancels_pending_input(self, controller, fetcher):
        controller.on_input("cats")
        controller.clear_results()
        await controller.wait_idle()
        assert fetcher.calls == 0

    async def test_supersede_in_flight(self, client, cache, metrics, renderer, storage, fetcher):
        controller = QueryController(
            client, cache, metrics, renderer, storage, debounce_delay=0.01, supersede_in_flight=True
        )
        gate = asyncio.Event()
        fetcher.gate = gate
        first = asyncio.create_task(controller.submit("cats"))
        await _until(lambda: fetcher.calls == 1)

        fetcher.gate = None
        second = await controller.submit("dogs")
        gate.set()

        assert await first is None
        assert second is not None
        assert controller.state.current_query == "dogs"
        renderer.display_results.assert_called_once_with(second, True)
        assert controller.state.is_loading is False

    async def test_aclose_cancels_pending_input(self, controller, fetcher):
        controller.on_input("cats")
        await controller.aclose()
        await controller.wait_idle()
        assert fetcher.calls == 0


# ============================================================
# Filters
# ============================================================


class TestFilters:
    async def test_apply_filters_restarts_search(self, controller, fetcher):
        await controller.submit("cats")
        await controller.apply_filters({"orientation": "portrait"})

        assert fetcher.calls == 2
        assert "orientation=portrait" in fetcher.urls[-1]
        assert "page=1" in fetcher.urls[-1]
        assert controller.state.filters.orientation is Orientation.PORTRAIT

    async def test_clear_filters_hits_cache(self, controller, fetcher, renderer):
        await controller.submit("cats")
        await controller.apply_filters(SearchFilters(orientation=Orientation.PORTRAIT))
        await controller.clear_filters()

        assert fetcher.calls == 2
        assert controller.state.filters == SearchFilters()
        assert renderer.update_stats.call_args.args[2] is True

    async def test_filters_without_query_only_stored(self, controller, fetcher):
        assert await controller.apply_filters({"color": "green"}) is None
        assert fetcher.calls == 0

        await controller.submit("forest")
        assert "color=green" in fetcher.urls[0]

    async def test_invalid_filter_rejected(self, controller):
        with pytest.raises(InvalidParameterError):
            await controller.apply_filters({"orientation": "diagonal"})
        assert controller.state.filters == SearchFilters()

    async def test_filters_survive_clear(self, controller):
        await controller.apply_filters({"order_by": "latest"})
        controller.clear_results()
        assert controller.state.filters.order_by.value == "latest"


class TestPerPage:
    async def test_has_more_follows_client_page_size(self, fetcher, cache, metrics, renderer, storage):
        client = UnsplashClient(fetcher, access_key="k", per_page=5)
        fetcher.respond(FetchResponse(status=200, json_body=make_search_body(5)))
        controller = QueryController(client, cache, metrics, renderer, storage)

        await controller.submit("cats")

        assert controller.per_page == 5
        assert controller.state.has_more is True
