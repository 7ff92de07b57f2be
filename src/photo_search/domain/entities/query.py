"""
Domain Entity: SearchQuery

Query text, page number and filter selection for one photo search,
plus the deterministic cache key derived from them.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from photo_search.shared.exceptions import InvalidParameterError


class Orientation(str, Enum):
    """Photo orientation filter ("any" means unfiltered)."""

    ANY = "any"
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARISH = "squarish"


class Color(str, Enum):
    """Colour filter values accepted by the photo API."""

    BLACK_AND_WHITE = "black_and_white"
    BLACK = "black"
    WHITE = "white"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"
    PURPLE = "purple"
    MAGENTA = "magenta"
    GREEN = "green"
    TEAL = "teal"
    BLUE = "blue"


class OrderBy(str, Enum):
    """Result ordering."""

    RELEVANT = "relevant"
    LATEST = "latest"


E = TypeVar("E", bound=Enum)


def _parse_enum(enum_cls: type[E], name: str, value: Any, default: E | None) -> E | None:
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidParameterError(name, value, f"one of: {allowed}") from None


@dataclass(frozen=True)
class SearchFilters:
    """
    Filter selection for a search.

    Frozen, so two selections with equal fields compare and hash equal no
    matter how they were built.
    """

    orientation: Orientation = Orientation.ANY
    color: Color | None = None
    order_by: OrderBy = OrderBy.RELEVANT

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> SearchFilters:
        """
        Build filters from raw form values.

        Empty strings and None fall back to defaults, unknown keys are ignored,
        and "orderBy" is accepted as an alias of "order_by".

        Raises:
            InvalidParameterError: a value is not one the API understands
        """
        values = values or {}
        order_by = values.get("order_by", values.get("orderBy"))
        return cls(
            orientation=_parse_enum(Orientation, "orientation", values.get("orientation"), Orientation.ANY),
            color=_parse_enum(Color, "color", values.get("color"), None),
            order_by=_parse_enum(OrderBy, "order_by", order_by, OrderBy.RELEVANT),
        )

    @property
    def is_default(self) -> bool:
        return self == SearchFilters()

    def to_params(self) -> dict[str, str]:
        """API query parameters for the non-default filters only."""
        params: dict[str, str] = {}
        if self.orientation is not Orientation.ANY:
            params["orientation"] = self.orientation.value
        if self.color is not None:
            params["color"] = self.color.value
        if self.order_by is not OrderBy.RELEVANT:
            params["order_by"] = self.order_by.value
        return params


def make_cache_key(text: str, page: int, filters: SearchFilters) -> str:
    """
    Deterministic cache key for (text, page, filters).

    Serializes a fixed-order field tuple rather than a mapping, so the key
    never depends on the order filters were supplied in.
    """
    color = filters.color.value if filters.color is not None else ""
    return json.dumps(
        [text, page, filters.orientation.value, color, filters.order_by.value],
        ensure_ascii=False,
        separators=(",", ":"),
    )


@dataclass(frozen=True)
class SearchQuery:
    """One page request: text, 1-based page and filters."""

    text: str
    page: int = 1
    filters: SearchFilters = field(default_factory=SearchFilters)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidParameterError("page", self.page, "an integer >= 1")

    @property
    def cache_key(self) -> str:
        return make_cache_key(self.text, self.page, self.filters)
