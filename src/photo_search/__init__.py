"""
Photo Search - client-side core for an Unsplash image search box

Turns search-box input into debounced, cached, paginated API calls and
keeps lightweight usage analytics in a key/value store. Rendering is left
to the UI shell through the Renderer protocol.

Usage:
    from photo_search import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict({"access_key": "YOUR_KEY"})
    container.renderer.override(providers.Object(my_renderer))
    controller = container.controller()

    await controller.submit("mountain lake")
    await controller.load_more()
    print(container.metrics().snapshot())
"""

from .application.search import (
    ControllerState,
    MetricsTracker,
    QueryController,
    SearchPhase,
)
from .config import SearchSettings
from .container import ApplicationContainer
from .domain import (
    Color,
    ImageResult,
    Orientation,
    OrderBy,
    ResultPage,
    SearchAnalytics,
    SearchFilters,
    SearchQuery,
    make_cache_key,
)
from .infrastructure.cache import PageCache
from .infrastructure.http import HttpxFetcher
from .infrastructure.sources import UnsplashClient
from .infrastructure.storage import JsonFileStorage, MemoryStorage

__version__ = "0.1.0"

__all__ = [
    # Wiring
    "ApplicationContainer",
    "SearchSettings",
    # Controller
    "QueryController",
    "ControllerState",
    "SearchPhase",
    "MetricsTracker",
    # Domain
    "Color",
    "ImageResult",
    "Orientation",
    "OrderBy",
    "ResultPage",
    "SearchAnalytics",
    "SearchFilters",
    "SearchQuery",
    "make_cache_key",
    # Infrastructure
    "PageCache",
    "HttpxFetcher",
    "UnsplashClient",
    "JsonFileStorage",
    "MemoryStorage",
]
