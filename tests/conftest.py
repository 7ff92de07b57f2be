"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from photo_search.application.search.controller import QueryController
from photo_search.application.search.metrics import MetricsTracker
from photo_search.application.search.ports import FetchResponse
from photo_search.infrastructure.cache.page_cache import PageCache
from photo_search.infrastructure.sources.unsplash import UnsplashClient
from photo_search.infrastructure.storage import MemoryStorage

# ============================================================
# Environment Fixtures
# ============================================================


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================
# Mock Unsplash API Responses
# ============================================================


def make_photo(index: int, **overrides: Any) -> dict[str, Any]:
    """One Unsplash search result object."""
    photo = {
        "id": f"photo-{index}",
        "description": f"Photo number {index}",
        "alt_description": f"a cat sitting, shot {index}",
        "urls": {
            "small": f"https://images.unsplash.com/photo-{index}?w=400",
            "regular": f"https://images.unsplash.com/photo-{index}?w=1080",
        },
        "links": {"html": f"https://unsplash.com/photos/photo-{index}"},
        "user": {
            "name": f"Photographer {index}",
            "profile_image": {"small": f"https://images.unsplash.com/profile-{index}"},
        },
        "likes": index * 10,
    }
    photo.update(overrides)
    return photo


def make_search_body(count: int, total: int = 1000, start: int = 0) -> dict[str, Any]:
    """A search response document with ``count`` results."""
    return {
        "total": total,
        "total_pages": max(1, total // 20),
        "results": [make_photo(start + i) for i in range(count)],
    }


@pytest.fixture
def search_body() -> Callable[..., dict[str, Any]]:
    return make_search_body


# ============================================================
# Fake Fetcher
# ============================================================


class FakeFetcher:
    """
    Scripted Fetcher.

    Each queued item is a FetchResponse to return or an exception to raise.
    When the queue runs dry, ``default`` is used. Setting ``gate`` makes
    every fetch wait for the event first.
    """

    def __init__(self, default: FetchResponse | None = None) -> None:
        self.urls: list[str] = []
        self.queue: list[FetchResponse | BaseException] = []
        self.default = default or FetchResponse(status=200, json_body=make_search_body(20))
        self.gate: asyncio.Event | None = None

    def respond(self, *items: FetchResponse | BaseException) -> None:
        self.queue.extend(items)

    def respond_json(self, body: Any, status: int = 200, reason: str = "OK") -> None:
        self.queue.append(FetchResponse(status=status, json_body=body, reason=reason))

    async def fetch(self, url: str) -> FetchResponse:
        self.urls.append(url)
        item = self.queue.pop(0) if self.queue else self.default
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def calls(self) -> int:
        return len(self.urls)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


# ============================================================
# Core services
# ============================================================


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def renderer() -> MagicMock:
    """Renderer double recording every UI call."""
    return MagicMock(name="renderer")


@pytest.fixture
def client(fetcher) -> UnsplashClient:
    return UnsplashClient(fetcher, access_key="test-key")


@pytest.fixture
def cache() -> PageCache:
    return PageCache(capacity=20)


@pytest.fixture
def metrics(storage) -> MetricsTracker:
    return MetricsTracker(storage)


@pytest.fixture
def controller(client, cache, metrics, renderer, storage) -> QueryController:
    return QueryController(
        client,
        cache,
        metrics,
        renderer,
        storage,
        debounce_delay=0.02,
    )
