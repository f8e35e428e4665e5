"""
Error Handlers
Custom exceptions and exception handlers for FastAPI.

Every error body has the shape {"error": "<message>"} and is never cached.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..search.models import NO_STORE_HEADERS

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error"
RATE_LIMIT_MESSAGE = "You're searching too fast. Please slow down."


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def headers(self) -> dict:
        return NO_STORE_HEADERS.copy()


class SearchError(APIError):
    """Exception raised when the ranked result set cannot be produced."""

    def __init__(self, message: str = GENERIC_SERVER_ERROR, details: dict = None):
        super().__init__(
            message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details
        )


class RateLimitExceededError(APIError):
    """Exception raised when a client exceeds its request budget."""

    def __init__(self, retry_after: int, message: str = RATE_LIMIT_MESSAGE):
        super().__init__(
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details={"retry_after": retry_after},
        )
        self.retry_after = max(1, int(retry_after))

    def headers(self) -> dict:
        headers = super().headers()
        headers["Retry-After"] = str(self.retry_after)
        return headers


def error_response(message: str, status_code: int, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=headers or NO_STORE_HEADERS.copy(),
    )


def setup_error_handlers(app: FastAPI) -> None:
    """
    Set up custom error handlers for the FastAPI app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Handle custom API errors."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"API error: {exc.message}",
            extra={
                "status_code": exc.status_code,
                "details": exc.details,
                "path": request.url.path,
            },
        )
        return error_response(exc.message, exc.status_code, exc.headers())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning(f"Validation error: {exc}", extra={"path": request.url.path})
        return error_response("Invalid request", status.HTTP_422_UNPROCESSABLE_ENTITY)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions without exposing internals."""
        logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"path": request.url.path})
        return error_response(GENERIC_SERVER_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)
