"""
API Middleware
Request logging and timing middleware.
"""

from .logging import RequestLoggingMiddleware
from .timing import LatencyTracker, RequestTimingMiddleware, get_latency_tracker

__all__ = [
    "LatencyTracker",
    "RequestLoggingMiddleware",
    "RequestTimingMiddleware",
    "get_latency_tracker",
]
