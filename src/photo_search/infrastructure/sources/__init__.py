"""
Photo Sources

Clients for third-party photo search APIs.
"""

from .unsplash import UNSPLASH_API_URL, UnsplashClient

__all__ = [
    "UNSPLASH_API_URL",
    "UnsplashClient",
]
