"""
HTTP Client Module - default Fetcher built on httpx.

This module provides the HTTP layer used by the photo source client:
- httpx.AsyncClient with connection pooling and a request timeout
- Proxy settings picked up from HTTP_PROXY / HTTPS_PROXY (httpx trust_env)
- Transport failures mapped onto the Photo Search exception hierarchy
- Non-2xx responses are returned, not raised; status handling is the
  caller's job

Usage:
    async with HttpxFetcher(timeout=10.0) as fetcher:
        response = await fetcher.fetch("https://api.unsplash.com/search/photos?query=cats")
        if response.ok:
            print(response.json_body["total"])
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any

import httpx
from typing_extensions import Self

from photo_search.application.search.ports import FetchResponse
from photo_search.shared.exceptions import MalformedResponseError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "photo-search/0.1"

# Query parameters that must never reach the logs
_SECRET_PARAMS = {"client_id"}


def redact_url(url: str) -> str:
    """Replace secret query parameter values with '***' for logging."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.query:
        return url
    params = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    redacted = [(k, "***" if k in _SECRET_PARAMS else v) for k, v in params]
    return urllib.parse.urlunsplit(parsed._replace(query=urllib.parse.urlencode(redacted)))


class HttpxFetcher:
    """
    Fetcher implementation over httpx.AsyncClient.

    The underlying client is created lazily and can be injected for tests
    (e.g. with an ``httpx.MockTransport``).
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            client: Pre-built client (caller keeps ownership of its settings)
            transport: Custom transport for the lazily built client
        """
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=5.0),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                headers={
                    "User-Agent": self._user_agent,
                    "Accept": "application/json",
                    "Accept-Version": "v1",
                },
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> FetchResponse:
        """
        Make HTTP GET request.

        Args:
            url: The URL to request

        Returns:
            FetchResponse with status, reason, headers and decoded JSON body
            (None when a non-2xx body is not JSON)

        Raises:
            NetworkError: When the request times out or the connection fails
            MalformedResponseError: When a 2xx body is not valid JSON
        """
        safe_url = redact_url(url)
        logger.debug(f"GET {safe_url}")
        client = self._get_client()

        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout for {safe_url}")
            raise NetworkError(f"Request timeout after {self._timeout}s") from e
        except httpx.RequestError as e:
            logger.error(f"Request error for {safe_url}: {e}")
            raise NetworkError(f"Connection failed: {e}") from e

        body: Any = None
        try:
            body = response.json()
        except ValueError as e:
            if response.is_success:
                logger.error(f"JSON decode error for {safe_url}: {e}")
                raise MalformedResponseError(
                    "Invalid JSON response", source=response.url.host
                ) from e

        return FetchResponse(
            status=response.status_code,
            json_body=body,
            reason=response.reason_phrase,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        """Close HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
