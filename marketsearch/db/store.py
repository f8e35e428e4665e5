"""
PostgreSQL Search Store
SearchStore backed by PostgreSQL + pg_trgm through SQLAlchemy's async engine.

Each call checks out its own pooled connection, so independent queries of one
request (facets, seller badges) can run concurrently. Cancelling the calling
task cancels the in-flight statement.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from ..search.config import SearchConfig
from ..search.errors import SimilarityUnavailableError, StoreError
from ..search.models import BaseFilterPredicate, FacetDimension, MatchMode, RankedQuery
from ..search.store import SearchStore
from .sql import (
    RenderedStatement,
    render_count_query,
    render_facet_query,
    render_ranked_query,
    render_seller_query,
    render_synonym_query,
)

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for "function ... does not exist"
UNDEFINED_FUNCTION = "42883"


def sqlstate(exc: BaseException) -> Optional[str]:
    """Extract the SQLSTATE from a driver error wrapped by SQLAlchemy."""
    candidates = [exc, getattr(exc, "orig", None)]
    orig = getattr(exc, "orig", None)
    if orig is not None:
        candidates.append(getattr(orig, "__cause__", None))

    for candidate in candidates:
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if code:
                return str(code)
    return None


def is_missing_similarity(exc: BaseException) -> bool:
    """
    Classify a store error as "similarity function unavailable".

    Matches SQLSTATE 42883 (undefined function), or a driver message that names
    the similarity function as missing. Only the driver error is read: the
    wrapped statement text always mentions similarity() in capable mode.
    """
    if sqlstate(exc) == UNDEFINED_FUNCTION:
        return True
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc).lower()
    return "function" in message and "similarity" in message and "does not exist" in message


class PostgresSearchStore(SearchStore):
    """
    Listing store on PostgreSQL.

    Requires the pg_trgm extension for MatchMode.CAPABLE; without it the
    ranked and count queries raise SimilarityUnavailableError.
    """

    def __init__(self, engine: AsyncEngine, config: Optional[SearchConfig] = None):
        """
        Initialize the store.

        Args:
            engine: Async SQLAlchemy engine (asyncpg)
            config: Search configuration (table names)
        """
        self.engine = engine
        self.config = config or SearchConfig()
        self.tables = self.config.tables

    async def _fetch_all(self, statement: RenderedStatement) -> List[Mapping[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(statement.to_text(), statement.params)
                return [dict(row) for row in result.mappings().all()]
        except DBAPIError as e:
            if is_missing_similarity(e):
                raise SimilarityUnavailableError(str(e.orig or e)) from e
            raise StoreError(f"Store query failed: {e.__class__.__name__}") from e
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Store unavailable: {e.__class__.__name__}") from e

    async def fetch_synonyms(self, term: str) -> List[str]:
        rows = await self._fetch_all(render_synonym_query(term, self.tables))
        return [str(row["word"]) for row in rows if row.get("word")]

    async def fetch_ranked(self, query: RankedQuery, mode: MatchMode) -> List[Mapping[str, Any]]:
        return await self._fetch_all(render_ranked_query(query, mode, self.tables))

    async def count_matches(self, query: RankedQuery, mode: MatchMode) -> int:
        rows = await self._fetch_all(render_count_query(query, mode, self.tables))
        return int(rows[0]["total"]) if rows else 0

    async def fetch_facet(
        self,
        dimension: FacetDimension,
        predicate: BaseFilterPredicate,
        limit: int,
    ) -> List[Tuple[Any, int]]:
        statement = render_facet_query(dimension, predicate, limit, self.tables)
        rows = await self._fetch_all(statement)
        return [(row["value"], int(row["count"])) for row in rows]

    async def fetch_sellers(self, seller_ids: Sequence[str]) -> Dict[str, Any]:
        if not seller_ids:
            return {}

        rows = await self._fetch_all(render_seller_query(seller_ids, self.tables))
        records: Dict[str, Any] = {}
        for row in rows:
            record = row.get("record")
            if isinstance(record, (str, bytes)):
                try:
                    record = json.loads(record)
                except ValueError:
                    logger.warning(f"Unparseable seller record for {row.get('id')}")
                    record = None
            records[str(row["id"])] = record
        return records

    async def ping(self) -> bool:
        """Check that the database answers."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def similarity_available(self) -> bool:
        """Probe whether pg_trgm similarity() can be called."""
        try:
            await self._fetch_all(
                RenderedStatement(sql="SELECT similarity('probe', 'probe') AS s", params={})
            )
            return True
        except SimilarityUnavailableError:
            return False
