"""
Unsplash Photo Search Client

Builds search URLs, checks responses and maps the JSON document onto
ResultPage / ImageResult domain entities. The HTTP call itself goes through
an injected Fetcher.

API Documentation: https://unsplash.com/documentation#search-photos

Notes:
- client_id (the access key) travels as a query parameter
- per_page is capped at 30 by the API
- Filters at their default value are omitted from the URL
- Error responses carry {"errors": ["..."]}
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import TYPE_CHECKING, Any

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from photo_search.domain.entities.image import ImageResult, ResultPage
from photo_search.domain.entities.query import SearchFilters
from photo_search.infrastructure.http.client import redact_url
from photo_search.shared.exceptions import (
    ConfigurationError,
    InvalidParameterError,
    InvalidQueryError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
    ServiceUnavailableError,
    is_retryable_error,
)

if TYPE_CHECKING:
    from photo_search.application.search.ports import FetchResponse, Fetcher

logger = logging.getLogger(__name__)

# API endpoints
UNSPLASH_API_URL = "https://api.unsplash.com/search/photos"


class UnsplashClient:
    """
    Unsplash photo search client.

    Usage:
        client = UnsplashClient(HttpxFetcher(), access_key="...")
        page = await client.search("cats", page=2, filters=SearchFilters(orientation=Orientation.PORTRAIT))
    """

    DEFAULT_PER_PAGE = 20
    MAX_PER_PAGE = 30  # API limit
    MAX_RETRY_WAIT = 30.0

    def __init__(
        self,
        fetcher: Fetcher,
        access_key: str,
        base_url: str = UNSPLASH_API_URL,
        per_page: int = DEFAULT_PER_PAGE,
        max_retries: int = 0,
        retry_base_delay: float = 1.0,
    ):
        """
        Initialize Unsplash client.

        Args:
            fetcher: HTTP capability used for every request
            access_key: Unsplash access key, sent as client_id
            base_url: Search endpoint
            per_page: Fixed page size (1-30)
            max_retries: Automatic retries for retryable errors (0 = single attempt)
            retry_base_delay: Base delay in seconds for exponential backoff
        """
        if not access_key:
            raise ConfigurationError("Unsplash access key is required")
        if not 1 <= per_page <= self.MAX_PER_PAGE:
            raise ConfigurationError(f"per_page must be between 1 and {self.MAX_PER_PAGE}, got {per_page}")
        if max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {max_retries}")
        self._fetcher = fetcher
        self._access_key = access_key
        self._base_url = base_url
        self._per_page = per_page
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    @property
    def per_page(self) -> int:
        return self._per_page

    def build_search_url(self, query: str, page: int, filters: SearchFilters | None = None) -> str:
        """
        Build the search URL.

        Parameter order: query, page, per_page, client_id, then any
        non-default filters (orientation, color, order_by).
        """
        params: dict[str, str] = {
            "query": query,
            "page": str(page),
            "per_page": str(self._per_page),
            "client_id": self._access_key,
        }
        params.update((filters or SearchFilters()).to_params())
        return f"{self._base_url}?{urllib.parse.urlencode(params)}"

    async def search(
        self,
        query: str,
        page: int = 1,
        filters: SearchFilters | None = None,
    ) -> ResultPage:
        """
        Fetch one page of photos.

        Args:
            query: Search text
            page: 1-based page number
            filters: Filter selection (defaults omitted from the request)

        Returns:
            ResultPage with at most per_page items

        Raises:
            InvalidQueryError / InvalidParameterError: bad arguments
            NetworkError (RateLimitError, ServiceUnavailableError): transport or non-2xx
            MalformedResponseError: body is not the expected JSON document
        """
        if not query or not query.strip():
            raise InvalidQueryError(query)
        if page < 1:
            raise InvalidParameterError("page", page, "an integer >= 1")

        url = self.build_search_url(query, page, filters)
        logger.debug(f"Unsplash search: {redact_url(url)}")

        if self._max_retries == 0:
            return await self._search_once(url, page)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=self._retry_base_delay, max=self.MAX_RETRY_WAIT),
            retry=retry_if_exception(is_retryable_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self._search_once(url, page)
        raise RuntimeError("Unexpected retry loop exit")

    async def _search_once(self, url: str, page: int) -> ResultPage:
        response = await self._fetcher.fetch(url)
        self._raise_for_status(response)
        return self._map_to_result_page(response.json_body, page)

    @staticmethod
    def _raise_for_status(response: FetchResponse) -> None:
        """Map non-2xx responses onto NetworkError subclasses."""
        if response.ok:
            return

        message = f"HTTP {response.status}: {response.reason}".rstrip(": ")
        detail = UnsplashClient._error_detail(response.json_body)
        if detail:
            message = f"{message} - {detail}"

        if response.status == 429:
            raise RateLimitError(message, retry_after=UnsplashClient._retry_after(response))
        if response.status >= 500:
            raise ServiceUnavailableError(message, status=response.status)
        raise NetworkError(message, status=response.status, retryable=False)

    @staticmethod
    def _error_detail(body: Any) -> str:
        if not isinstance(body, dict):
            return ""
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
        return ""

    @staticmethod
    def _retry_after(response: FetchResponse) -> float:
        raw = response.header("Retry-After")
        try:
            return max(0.0, float(raw)) if raw is not None else 1.0
        except ValueError:
            return 1.0

    def _map_to_result_page(self, body: Any, page: int) -> ResultPage:
        """
        Map the search response document onto a ResultPage.

        A missing "results" list is treated as an empty page; a present
        but non-list value is malformed. Items that are not objects are
        skipped.
        """
        if not isinstance(body, dict):
            raise MalformedResponseError(
                f"expected a JSON object, got {type(body).__name__}", source="unsplash"
            )

        raw_items = body.get("results")
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list):
            raise MalformedResponseError("'results' is not a list", source="unsplash")

        items: list[ImageResult] = []
        for item in raw_items:
            if not isinstance(item, dict):
                logger.warning(f"Skipping non-object result item: {item!r}")
                continue
            items.append(self._map_to_image_result(item))

        if len(items) > self._per_page:
            logger.warning(f"Response returned {len(items)} items for per_page={self._per_page}, truncating")
            items = items[: self._per_page]

        total = body.get("total")
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            total = len(items)

        return ResultPage(items=tuple(items), total_available=total, requested_page=page)

    @staticmethod
    def _map_to_image_result(item: dict[str, Any]) -> ImageResult:
        """
        Map one Unsplash photo object to the domain entity.

        Args:
            item: Single entry of the response "results" list

        Returns:
            ImageResult domain entity
        """
        return ImageResult(
            id=str(item.get("id") or ""),
            description=_string_or_none(item.get("description")),
            alt_text=_string_or_none(item.get("alt_description")),
            image_url=_string_or_none(_dig(item, "urls", "small")),
            page_url=_string_or_none(_dig(item, "links", "html")),
            author_name=_string_or_none(_dig(item, "user", "name")) or "",
            author_avatar_url=_string_or_none(_dig(item, "user", "profile_image", "small")),
            likes=_int_or_none(item.get("likes")),
            downloads=_int_or_none(item.get("downloads")),
            raw=item,
        )


def _dig(data: dict[str, Any], *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _string_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value
