"""HTTP Client Utilities."""

from .client import HttpxFetcher, redact_url

__all__ = [
    "HttpxFetcher",
    "redact_url",
]
