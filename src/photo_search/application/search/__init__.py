"""
Application Layer: Photo Search

Public API for the search controller and analytics.
"""

from .controller import ControllerState, QueryController, SearchPhase
from .metrics import MetricsTracker
from .ports import FetchResponse, Fetcher, Renderer, Storage

__all__ = [
    "QueryController",
    "ControllerState",
    "SearchPhase",
    "MetricsTracker",
    "FetchResponse",
    "Fetcher",
    "Renderer",
    "Storage",
]
