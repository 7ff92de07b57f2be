"""Tests for SearchSettings."""

import logging

import pytest

from photo_search.config import SearchSettings
from photo_search.infrastructure.sources.unsplash import UNSPLASH_API_URL
from photo_search.shared.exceptions import ConfigurationError


class TestDefaults:
    def test_defaults(self):
        settings = SearchSettings()
        assert settings.base_url == UNSPLASH_API_URL
        assert settings.per_page == 20
        assert settings.cache_size == 20
        assert settings.cache_policy == "fifo"
        assert settings.debounce_delay == 0.3
        assert settings.min_query_length == 2
        assert settings.history_limit == 10
        assert settings.max_retries == 0
        assert settings.supersede_in_flight is False
        assert settings.storage_path is None

    def test_defaults_validate(self):
        assert SearchSettings().validate() == SearchSettings()


class TestValidate:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"per_page": 0},
            {"per_page": 31},
            {"cache_size": 0},
            {"cache_policy": "random"},
            {"debounce_delay": -1},
            {"min_query_length": 0},
            {"history_limit": 0},
            {"timeout": 0},
            {"max_retries": -1},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigurationError):
            SearchSettings(**overrides).validate()


class TestFromDict:
    def test_ignores_unknown_keys(self):
        settings = SearchSettings.from_dict({"access_key": "k", "per_page": 10, "theme": "dark"})
        assert settings.access_key == "k"
        assert settings.per_page == 10

    def test_validates(self):
        with pytest.raises(ConfigurationError):
            SearchSettings.from_dict({"cache_size": -5})

    def test_round_trip_through_dict(self):
        settings = SearchSettings(access_key="k", cache_policy="lru")
        assert SearchSettings.from_dict(settings.to_dict()) == settings


class TestFromEnv:
    def test_reads_variables(self):
        settings = SearchSettings.from_env(
            {
                "UNSPLASH_ACCESS_KEY": " abc123 ",
                "PHOTO_SEARCH_PER_PAGE": "30",
                "PHOTO_SEARCH_CACHE_SIZE": "50",
                "PHOTO_SEARCH_CACHE_POLICY": "LRU",
                "PHOTO_SEARCH_DEBOUNCE_MS": "150",
                "PHOTO_SEARCH_TIMEOUT": "2.5",
                "PHOTO_SEARCH_MAX_RETRIES": "3",
                "PHOTO_SEARCH_STORAGE_PATH": "~/.photo-search/store.json",
            }
        )
        assert settings.access_key == "abc123"
        assert settings.per_page == 30
        assert settings.cache_size == 50
        assert settings.cache_policy == "lru"
        assert settings.debounce_delay == pytest.approx(0.15)
        assert settings.timeout == 2.5
        assert settings.max_retries == 3
        assert settings.storage_path == "~/.photo-search/store.json"

    def test_empty_environment_uses_defaults(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = SearchSettings.from_env({})
        assert settings.per_page == 20
        assert settings.debounce_delay == pytest.approx(0.3)
        assert settings.access_key == ""
        assert "UNSPLASH_ACCESS_KEY is not set" in caplog.text

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("PHOTO_SEARCH_PER_PAGE", "twenty"),
            ("PHOTO_SEARCH_TIMEOUT", "soon"),
            ("PHOTO_SEARCH_PER_PAGE", "100"),
        ],
    )
    def test_invalid_values(self, name, value):
        with pytest.raises(ConfigurationError):
            SearchSettings.from_env({"UNSPLASH_ACCESS_KEY": "k", name: value})

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("UNSPLASH_ACCESS_KEY", "from-env")
        monkeypatch.setenv("PHOTO_SEARCH_MAX_RETRIES", "1")
        settings = SearchSettings.from_env()
        assert settings.access_key == "from-env"
        assert settings.max_retries == 1
