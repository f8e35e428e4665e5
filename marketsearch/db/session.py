"""
Database Engine
Async SQLAlchemy engine factory for the listing store.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = logging.getLogger(__name__)

_ASYNC_DRIVER = "postgresql+asyncpg"


def async_database_url(database_url: str) -> str:
    """Point a postgres:// or postgresql:// URL at the asyncpg driver."""
    for prefix in ("postgresql+asyncpg://", "postgresql://", "postgres://"):
        if database_url.startswith(prefix):
            return f"{_ASYNC_DRIVER}://{database_url[len(prefix):]}"
    return database_url


def create_engine_from_url(
    database_url: str,
    pool_size: int = 20,
    max_overflow: int = 10,
    statement_timeout_ms: Optional[int] = None,
) -> AsyncEngine:
    """
    Create the async engine.

    Args:
        database_url: PostgreSQL URL (sync or asyncpg form)
        pool_size: Connection pool size
        max_overflow: Extra connections allowed beyond the pool
        statement_timeout_ms: Server-side statement timeout, if any

    Returns:
        AsyncEngine bound to asyncpg
    """
    connect_args = {}
    if statement_timeout_ms:
        connect_args["server_settings"] = {"statement_timeout": str(statement_timeout_ms)}

    engine = create_async_engine(
        async_database_url(database_url),
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,  # Verify connections before using
        connect_args=connect_args,
    )
    logger.info(f"Database engine created: {database_url.split('@')[-1]}")
    return engine
