"""
Health Check Endpoints
Endpoints for health checks and status monitoring.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from ...search import SearchStore
from ...search.errors import StoreError
from ...search.models import MatchMode
from ..config import APISettings, get_settings
from ..dependencies import get_rate_limiter, get_search_store
from ..middleware.timing import get_latency_tracker
from ..services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """Basic liveness check."""
    return {"status": "healthy", "timestamp": _now()}


@router.get("/status", status_code=status.HTTP_200_OK)
async def status_check(
    settings: APISettings = Depends(get_settings),
    store: SearchStore = Depends(get_search_store),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> Dict[str, Any]:
    """
    Detailed status check.

    Checks status of:
    - Database connection
    - Trigram similarity capability (capable or degraded search mode)
    - Rate limiter backend
    - Request latency

    Returns:
        Detailed status information
    """
    status_info: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": _now(),
        "version": settings.version,
        "components": {},
    }

    # Database
    database_ok = await store.ping()
    status_info["components"]["database"] = {
        "status": "healthy" if database_ok else "unhealthy",
        "url": settings.database_url.split("@")[-1],  # Hide credentials
    }
    if not database_ok:
        status_info["status"] = "degraded"

    # Similarity capability
    search_mode = MatchMode.DEGRADED
    if database_ok:
        try:
            if await store.similarity_available():
                search_mode = MatchMode.CAPABLE
        except StoreError as e:
            logger.error(f"Similarity capability check failed: {e}")
    status_info["components"]["search"] = {"mode": search_mode.value}
    if search_mode is MatchMode.DEGRADED:
        status_info["status"] = "degraded"

    # Rate limiter
    status_info["components"]["rate_limiter"] = {
        "enabled": settings.enable_rate_limit,
        "backend": limiter.backend,
        "limit": limiter.limit,
        "window_seconds": limiter.window_seconds,
    }

    # Latency
    latency_stats = get_latency_tracker().get_stats()
    status_info["performance"] = {
        "request_count": latency_stats["count"],
        "latency_p50_ms": round(latency_stats["p50"], 2),
        "latency_p95_ms": round(latency_stats["p95"], 2),
        "latency_p99_ms": round(latency_stats["p99"], 2),
        "slow_request_ms": settings.slow_request_ms,
    }

    return status_info
