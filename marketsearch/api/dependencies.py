"""
Dependency Injection
FastAPI dependencies for the store, search engine, rate limiter and request context.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from ..db import PostgresSearchStore, create_engine_from_url
from ..search import SearchConfig, SearchEngine, SearchStore
from ..search.models import RequestContext, SearchRequest
from .config import APISettings, get_settings
from .errors import RateLimitExceededError
from .services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimiter,
    RedisRateLimiter,
    client_ip,
)

logger = logging.getLogger(__name__)

SEARCH_RATE_LIMIT_BUCKET = "unified_search"

# Singletons, created lazily on first use
_engine: Optional[AsyncEngine] = None
_rate_limiter: Optional[RateLimiter] = None


def get_db_engine() -> AsyncEngine:
    """Get database engine (singleton)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_from_url(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )
    return _engine


async def dispose_db_engine() -> None:
    """Close pooled connections on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")


def get_search_config(settings: APISettings = Depends(get_settings)) -> SearchConfig:
    return settings.search_config()


def get_search_store(config: SearchConfig = Depends(get_search_config)) -> SearchStore:
    """
    Get the listing store.

    Use as FastAPI dependency:
        @app.get("/endpoint")
        async def endpoint(store: SearchStore = Depends(get_search_store)):
            ...
    """
    return PostgresSearchStore(get_db_engine(), config)


def get_search_engine(
    store: SearchStore = Depends(get_search_store),
    config: SearchConfig = Depends(get_search_config),
) -> SearchEngine:
    """
    Get search engine instance.

    Use as FastAPI dependency:
        @app.get("/search")
        async def search(engine: SearchEngine = Depends(get_search_engine)):
            ...
    """
    return SearchEngine(store, config)


def get_rate_limiter(settings: APISettings = Depends(get_settings)) -> RateLimiter:
    """Get the rate limiter for the configured backend (singleton)."""
    global _rate_limiter
    if _rate_limiter is None:
        if settings.rate_limit_backend == "redis":
            _rate_limiter = RedisRateLimiter.from_settings(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                limit=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window,
            )
        else:
            _rate_limiter = InMemoryRateLimiter(
                limit=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window,
            )
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Drop the rate limiter singleton (useful for testing)."""
    global _rate_limiter
    _rate_limiter = None


def get_request_id(request: Request) -> str:
    """
    Get or generate request ID for tracing.

    The logging middleware stores the ID on request.state; the header and a
    fresh UUID cover apps mounted without it.
    """
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return request_id
    return request.headers.get("X-Request-ID") or str(uuid.uuid4())


def is_anonymous_request(request: Request) -> bool:
    """A request is anonymous without an Authorization header or a session cookie."""
    if request.headers.get("authorization"):
        return False
    cookie = request.headers.get("cookie") or ""
    return "session" not in cookie


def get_request_context(request: Request, search_request: SearchRequest) -> RequestContext:
    return RequestContext(
        is_anonymous=is_anonymous_request(request),
        page=search_request.page,
        page_size=search_request.page_size,
    )


async def enforce_search_rate_limit(
    request: Request,
    settings: APISettings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """
    Count the request against the search budget of its client.

    Raises:
        RateLimitExceededError: If the client's budget for the window is spent
    """
    if not settings.enable_rate_limit:
        return

    ip = client_ip(request)
    result = await limiter.check(f"{SEARCH_RATE_LIMIT_BUCKET}:{ip}")
    if not result.ok:
        logger.warning(
            f"Rate limit exceeded for {ip}, retry after {result.retry_after}s",
            extra={"request_id": get_request_id(request)},
        )
        raise RateLimitExceededError(retry_after=result.retry_after)
