"""
Domain Entity: ImageResult

One photo from a search response, plus the ResultPage that carries a page
of them. The raw API record is passed through untouched; the named fields
are conveniences for renderers and may be empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ImageResult:
    """
    Pass-through photo record.

    Source mapping is handled by the infrastructure layer; nothing here is
    validated beyond what a renderer needs to find.
    """

    id: str = ""
    description: str | None = None
    alt_text: str | None = None

    # Image links
    image_url: str | None = None  # "small" rendition used in result grids
    page_url: str | None = None  # photo page on the provider site

    # Author
    author_name: str = ""
    author_avatar_url: str | None = None

    # Counters (downloads is often absent from search responses)
    likes: int | None = None
    downloads: int | None = None

    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def display_alt(self) -> str:
        """Alt text with the same fallbacks the result cards use."""
        return self.alt_text or self.description or "Image from Unsplash"


@dataclass(frozen=True)
class ResultPage:
    """One page of results plus pagination metadata."""

    items: tuple[ImageResult, ...]
    total_available: int
    requested_page: int

    @property
    def is_empty(self) -> bool:
        return not self.items

    def __len__(self) -> int:
        return len(self.items)
