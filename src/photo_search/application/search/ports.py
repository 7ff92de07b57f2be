"""
Ports: collaborators the search controller talks to.

- Fetcher: performs one HTTP GET and returns status + decoded JSON body
- Storage: opaque string key/value persistence
- Renderer: the UI shell that draws results, errors and stats

Default Fetcher and Storage implementations live in the infrastructure
layer; Renderer is always provided by the UI shell.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from photo_search.domain.entities.image import ResultPage


@dataclass(frozen=True)
class FetchResponse:
    """Status and decoded body of one HTTP response."""

    status: int
    json_body: Any = None
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@runtime_checkable
class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchResponse:
        """
        GET ``url``.

        Raises:
            NetworkError: transport failure or timeout
            MalformedResponseError: 2xx body that is not JSON
        """
        ...


@runtime_checkable
class Storage(Protocol):
    def get_string(self, key: str) -> str | None: ...

    def set_string(self, key: str, value: str) -> None: ...


@runtime_checkable
class Renderer(Protocol):
    def display_results(self, page: ResultPage, is_new_search: bool) -> None: ...

    def show_error(self, message: str) -> None: ...

    def hide_error(self) -> None: ...

    def show_no_results(self) -> None: ...

    def clear_results(self) -> None: ...

    def set_loading_state(self, is_loading: bool) -> None: ...

    def update_stats(self, total: int, elapsed_ms: float, from_cache: bool) -> None: ...

    def update_load_more(self, visible: bool) -> None: ...
