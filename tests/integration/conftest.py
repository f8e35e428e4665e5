"""
Integration test fixtures
"""

import pytest
from fastapi.testclient import TestClient

from marketsearch.api.config import reset_settings
from marketsearch.api.dependencies import get_rate_limiter, get_search_store, reset_rate_limiter
from marketsearch.api.main import create_app
from marketsearch.api.middleware.timing import get_latency_tracker
from marketsearch.api.services.rate_limiter import InMemoryRateLimiter


@pytest.fixture
def limiter():
    return InMemoryRateLimiter(limit=5, window_seconds=60)


@pytest.fixture
def app(store, limiter):
    reset_settings()
    reset_rate_limiter()
    get_latency_tracker().reset()

    app = create_app()
    app.dependency_overrides[get_search_store] = lambda: store
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
