"""
Settings for the photo search core.

Defaults reproduce the browser front end (20 per page, 20 cached pages,
300 ms debounce, 10 history entries). ``SearchSettings.from_env()`` reads
overrides from the environment:

    UNSPLASH_ACCESS_KEY         API access key (required for real requests)
    PHOTO_SEARCH_BASE_URL       Search endpoint
    PHOTO_SEARCH_PER_PAGE       Page size (1-30)
    PHOTO_SEARCH_CACHE_SIZE     Cached pages
    PHOTO_SEARCH_CACHE_POLICY   "fifo" or "lru"
    PHOTO_SEARCH_DEBOUNCE_MS    Debounce interval in milliseconds
    PHOTO_SEARCH_TIMEOUT        HTTP timeout in seconds
    PHOTO_SEARCH_MAX_RETRIES    Automatic retries for transient errors
    PHOTO_SEARCH_STORAGE_PATH   JSON file for metrics (memory only if unset)
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from photo_search.infrastructure.sources.unsplash import UNSPLASH_API_URL
from photo_search.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchSettings:
    """Typed configuration shared by the container and its services."""

    access_key: str = ""
    base_url: str = UNSPLASH_API_URL
    per_page: int = 20
    cache_size: int = 20
    cache_policy: str = "fifo"
    debounce_delay: float = 0.3  # seconds
    min_query_length: int = 2
    history_limit: int = 10
    timeout: float = 30.0
    max_retries: int = 0
    retry_base_delay: float = 1.0
    supersede_in_flight: bool = False
    storage_path: str | None = None
    user_agent: str = "photo-search/0.1"

    def validate(self) -> SearchSettings:
        """
        Check value ranges.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: on the first invalid value
        """
        if not 1 <= self.per_page <= 30:
            raise ConfigurationError(f"per_page must be between 1 and 30, got {self.per_page}")
        if self.cache_size < 1:
            raise ConfigurationError(f"cache_size must be >= 1, got {self.cache_size}")
        if self.cache_policy not in ("fifo", "lru"):
            raise ConfigurationError(f"cache_policy must be 'fifo' or 'lru', got {self.cache_policy!r}")
        if self.debounce_delay < 0:
            raise ConfigurationError(f"debounce_delay must be >= 0, got {self.debounce_delay}")
        if self.min_query_length < 1:
            raise ConfigurationError(f"min_query_length must be >= 1, got {self.min_query_length}")
        if self.history_limit < 1:
            raise ConfigurationError(f"history_limit must be >= 1, got {self.history_limit}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        return self

    def to_dict(self) -> dict[str, Any]:
        """Plain dict, e.g. for ``container.config.from_dict``."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> SearchSettings:
        """Build from a mapping, ignoring unknown keys."""
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in names}).validate()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SearchSettings:
        """
        Instantiate settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (tests)

        Raises:
            ConfigurationError: a variable is set but cannot be parsed
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        debounce_ms = _env_float(env, "PHOTO_SEARCH_DEBOUNCE_MS", defaults.debounce_delay * 1000)
        settings = cls(
            access_key=env.get("UNSPLASH_ACCESS_KEY", "").strip(),
            base_url=env.get("PHOTO_SEARCH_BASE_URL", "").strip() or defaults.base_url,
            per_page=_env_int(env, "PHOTO_SEARCH_PER_PAGE", defaults.per_page),
            cache_size=_env_int(env, "PHOTO_SEARCH_CACHE_SIZE", defaults.cache_size),
            cache_policy=env.get("PHOTO_SEARCH_CACHE_POLICY", "").strip().lower() or defaults.cache_policy,
            debounce_delay=debounce_ms / 1000,
            timeout=_env_float(env, "PHOTO_SEARCH_TIMEOUT", defaults.timeout),
            max_retries=_env_int(env, "PHOTO_SEARCH_MAX_RETRIES", defaults.max_retries),
            storage_path=env.get("PHOTO_SEARCH_STORAGE_PATH", "").strip() or None,
        ).validate()

        if not settings.access_key:
            logger.warning("UNSPLASH_ACCESS_KEY is not set; searches will fail until it is configured")
        return settings


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
