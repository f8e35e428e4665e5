"""
API Services
Request budgeting for the API endpoints.
"""

from .rate_limiter import (
    InMemoryRateLimiter,
    RateLimiter,
    RateLimitResult,
    RedisRateLimiter,
    client_ip,
)

__all__ = [
    "InMemoryRateLimiter",
    "RateLimiter",
    "RateLimitResult",
    "RedisRateLimiter",
    "client_ip",
]
