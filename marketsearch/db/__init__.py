"""
Database Access
Async engine factory, SQL rendering and the PostgreSQL search store.
"""

from .session import async_database_url, create_engine_from_url
from .store import PostgresSearchStore, is_missing_similarity

__all__ = [
    "async_database_url",
    "create_engine_from_url",
    "PostgresSearchStore",
    "is_missing_similarity",
]
