"""
FastAPI Main Application
Entry point for the Marketplace Listing Search API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .config import get_settings
from .dependencies import dispose_db_engine
from .errors import setup_error_handlers
from .middleware import RequestLoggingMiddleware, RequestTimingMiddleware
from .routers import health_router, search_router

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    The database engine is created lazily by the first request and
    disposed on shutdown.
    """
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.version}...")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await dispose_db_engine()


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Add GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Add custom middleware
    app.add_middleware(RequestTimingMiddleware, slow_request_ms=settings.slow_request_ms)
    app.add_middleware(RequestLoggingMiddleware)

    setup_error_handlers(app)

    app.include_router(health_router)
    app.include_router(search_router)

    @app.get("/")
    async def root():
        """API information."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": settings.description,
            "endpoints": {
                "search": "/api/search",
                "health": "/health",
                "status": "/status",
                "docs": "/docs",
            },
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "marketsearch.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
