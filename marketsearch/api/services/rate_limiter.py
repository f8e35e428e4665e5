"""
Rate Limiter Service
Fixed-window request budgets per client, in process memory or Redis.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

import redis.asyncio as aioredis
from fastapi import Request
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Headers consulted for the client address, most trusted first
CLIENT_IP_HEADERS = (
    "cf-connecting-ip",
    "x-forwarded-for",
    "x-vercel-forwarded-for",
    "x-real-ip",
    "x-client-ip",
)


@dataclass(frozen=True)
class RateLimitResult:
    ok: bool
    retry_after: int
    remaining: Optional[int] = None


class RateLimiter(ABC):
    """Request budget of `limit` calls per `window_seconds` for each key."""

    backend = "none"

    def __init__(self, limit: int = 60, window_seconds: int = 60):
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds

    @abstractmethod
    async def check(self, key: str) -> RateLimitResult:
        """Count one request against `key` and report whether it may proceed."""


class InMemoryRateLimiter(RateLimiter):
    """
    Process-local fixed-window limiter.

    Only correct for a single worker process; use RedisRateLimiter when the
    API runs with several workers.
    """

    backend = "memory"

    def __init__(
        self,
        limit: int = 60,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(limit, window_seconds)
        self._clock = clock
        self._buckets: Dict[str, Tuple[int, float]] = {}  # key -> (count, reset_at)
        self._next_sweep = 0.0
        self._lock = Lock()

    async def check(self, key: str) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)

            count, reset_at = self._buckets.get(key, (0, 0.0))
            if now >= reset_at:
                count, reset_at = 0, now + self.window_seconds

            retry_after = max(1, math.ceil(reset_at - now))
            if count >= self.limit:
                return RateLimitResult(ok=False, retry_after=retry_after, remaining=0)

            count += 1
            self._buckets[key] = (count, reset_at)
            return RateLimitResult(
                ok=True, retry_after=retry_after, remaining=self.limit - count
            )

    def _sweep(self, now: float) -> None:
        """Drop buckets whose window has ended; runs at most once per window."""
        expired = [key for key, (_, reset_at) in self._buckets.items() if now >= reset_at]
        for key in expired:
            del self._buckets[key]
        self._next_sweep = now + self.window_seconds

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


class RedisRateLimiter(RateLimiter):
    """
    Shared fixed-window limiter on Redis.

    Each window gets its own key (INCR, then EXPIRE on first hit). Redis
    failures let the request through.
    """

    backend = "redis"

    def __init__(
        self,
        client: aioredis.Redis,
        limit: int = 60,
        window_seconds: int = 60,
        prefix: str = "rl",
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(limit, window_seconds)
        self.client = client
        self.prefix = prefix
        self._clock = clock

    @classmethod
    def from_settings(
        cls, host: str, port: int, db: int, limit: int, window_seconds: int
    ) -> "RedisRateLimiter":
        client = aioredis.Redis(host=host, port=port, db=db, socket_timeout=1.0)
        logger.info(f"Redis rate limiter initialized: {host}:{port} (db={db})")
        return cls(client, limit=limit, window_seconds=window_seconds)

    async def check(self, key: str) -> RateLimitResult:
        now = self._clock()
        window = int(now // self.window_seconds)
        retry_after = max(1, math.ceil((window + 1) * self.window_seconds - now))
        redis_key = f"{self.prefix}:{key}:{window}"

        try:
            count = await self.client.incr(redis_key)
            if count == 1:
                await self.client.expire(redis_key, self.window_seconds)
        except (RedisError, OSError) as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return RateLimitResult(ok=True, retry_after=retry_after)

        if count > self.limit:
            return RateLimitResult(ok=False, retry_after=retry_after, remaining=0)
        return RateLimitResult(ok=True, retry_after=retry_after, remaining=self.limit - count)


def client_ip(request: Request) -> str:
    """Resolve the client address from proxy headers, then the socket peer."""
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            first_hop = value.split(",")[0].strip()
            if first_hop:
                return first_hop

    if request.client and request.client.host:
        return request.client.host
    return "anon"
