"""
Application DI Container (dependency-injector).

Wires settings, the HTTP fetcher, storage, cache, metrics, the Unsplash
client and the query controller. The UI shell must supply the renderer.

Usage::

    from photo_search.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict({"access_key": "...", "storage_path": "~/.photo-search/metrics.json"})
    container.renderer.override(providers.Object(my_renderer))

    controller = container.controller()

    # In tests, override any provider:
    container.fetcher.override(providers.Object(fake_fetcher))
"""

from __future__ import annotations

import logging
from typing import Any

from dependency_injector import containers, providers

logger = logging.getLogger(__name__)


def _create_settings(values: dict[str, Any] | None) -> object:
    from photo_search.config import SearchSettings

    return SearchSettings.from_dict(values or {})


def _create_fetcher(settings: Any) -> object:
    """Lazy factory for HttpxFetcher."""
    from photo_search.infrastructure.http.client import HttpxFetcher

    return HttpxFetcher(timeout=settings.timeout, user_agent=settings.user_agent)


def _create_storage(settings: Any) -> object:
    """File storage when a path is configured, memory otherwise."""
    from photo_search.infrastructure.storage import JsonFileStorage, MemoryStorage

    if settings.storage_path:
        logger.info(f"Persisting search metrics to {settings.storage_path}")
        return JsonFileStorage(settings.storage_path)
    return MemoryStorage()


def _create_page_cache(settings: Any) -> object:
    from photo_search.infrastructure.cache import PageCache

    return PageCache(capacity=settings.cache_size, policy=settings.cache_policy)


def _create_metrics(storage: Any, settings: Any) -> object:
    from photo_search.application.search.metrics import MetricsTracker

    return MetricsTracker(storage, history_limit=settings.history_limit)


def _create_photo_client(fetcher: Any, settings: Any) -> object:
    from photo_search.infrastructure.sources.unsplash import UnsplashClient

    return UnsplashClient(
        fetcher,
        access_key=settings.access_key,
        base_url=settings.base_url,
        per_page=settings.per_page,
        max_retries=settings.max_retries,
        retry_base_delay=settings.retry_base_delay,
    )


def _create_controller(
    photo_client: Any,
    page_cache: Any,
    metrics: Any,
    renderer: Any,
    storage: Any,
    settings: Any,
) -> object:
    from photo_search.application.search.controller import QueryController

    return QueryController(
        photo_client,
        page_cache,
        metrics,
        renderer,
        storage,
        debounce_delay=settings.debounce_delay,
        min_query_length=settings.min_query_length,
        supersede_in_flight=settings.supersede_in_flight,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for the photo search core.

    - ``settings``: validated SearchSettings built from ``config``
    - ``fetcher`` / ``storage``: default I/O adapters
    - ``page_cache`` / ``metrics``: shared by the controller
    - ``photo_client``: Unsplash API client
    - ``renderer``: required, supplied by the UI shell
    - ``controller``: the QueryController
    """

    config = providers.Configuration()

    settings = providers.Singleton(_create_settings, config)

    fetcher = providers.Singleton(_create_fetcher, settings=settings)

    storage = providers.Singleton(_create_storage, settings=settings)

    page_cache = providers.Singleton(_create_page_cache, settings=settings)

    metrics = providers.Singleton(_create_metrics, storage=storage, settings=settings)

    photo_client = providers.Singleton(_create_photo_client, fetcher=fetcher, settings=settings)

    renderer = providers.Dependency()

    controller = providers.Singleton(
        _create_controller,
        photo_client=photo_client,
        page_cache=page_cache,
        metrics=metrics,
        renderer=renderer,
        storage=storage,
        settings=settings,
    )


__all__ = ["ApplicationContainer"]
