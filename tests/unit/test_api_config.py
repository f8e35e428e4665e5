"""
Tests for API settings and the derived engine configuration.
"""

import pytest
from pydantic import ValidationError

from marketsearch.api.config import APISettings, get_settings, reset_settings
from marketsearch.search import SearchConfig
from marketsearch.search.models import FacetDimension


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_defaults():
    settings = APISettings()

    assert settings.rate_limit_requests == 60
    assert settings.rate_limit_window == 60
    assert settings.rate_limit_backend == "memory"
    assert settings.edge_cache_ttl == 60
    assert settings.cors_allow_methods == ["GET"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("API_RATE_LIMIT_BACKEND", " Redis ")
    monkeypatch.setenv("SEARCH_MAX_PAGE_SIZE", "40")
    monkeypatch.setenv("API_CORS_ORIGINS", "https://a.example, https://b.example")

    settings = APISettings()

    assert settings.rate_limit_backend == "redis"
    assert settings.max_page_size == 40
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_cors_origins_accept_json(monkeypatch):
    monkeypatch.setenv("API_CORS_ORIGINS", '["https://a.example"]')
    assert APISettings().cors_origins == ["https://a.example"]


def test_unknown_rate_limit_backend_is_rejected(monkeypatch):
    monkeypatch.setenv("API_RATE_LIMIT_BACKEND", "memcached")
    with pytest.raises(ValidationError):
        APISettings()


def test_search_config_is_derived_from_settings(monkeypatch):
    monkeypatch.setenv("SEARCH_FACET_LIMIT", "10")
    monkeypatch.setenv("SEARCH_CONDITION_FACET_LIMIT", "3")
    monkeypatch.setenv("SEARCH_SIMILARITY_THRESHOLD", "0.3")
    monkeypatch.setenv("SEARCH_LISTING_TABLE", '"listings"')

    config = APISettings().search_config()

    assert isinstance(config, SearchConfig)
    assert config.similarity_threshold == 0.3
    assert config.facet_limit(FacetDimension.TOWN) == 10
    assert config.facet_limit(FacetDimension.CONDITION) == 3
    assert config.tables.listing == '"listings"'
    assert config.max_result_window == 10_000


def test_invalid_search_config_is_rejected():
    with pytest.raises(ValueError):
        SearchConfig(similarity_threshold=1.5)
    with pytest.raises(ValueError):
        SearchConfig(default_page_size=60, max_page_size=50)


def test_settings_singleton():
    assert get_settings() is get_settings()
    first = get_settings()
    reset_settings()
    assert get_settings() is not first
