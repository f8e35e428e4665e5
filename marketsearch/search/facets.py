"""
Facet Aggregator
Grouped counts per dimension over the base filter predicate only.

The free-text relevance test never reaches facet queries, so typing in the
search box does not change which facet values are offered.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from .config import SearchConfig
from .models import BaseFilterPredicate, FacetBucket, FacetDimension
from .store import SearchStore

logger = logging.getLogger(__name__)


class FacetAggregator:
    """Runs one aggregate query per dimension, concurrently."""

    def __init__(self, store: SearchStore, config: Optional[SearchConfig] = None):
        self.store = store
        self.config = config or SearchConfig()

    async def aggregate(
        self,
        predicate: BaseFilterPredicate,
        request_id: Optional[str] = None,
    ) -> Dict[FacetDimension, Tuple[FacetBucket, ...]]:
        """
        Count listings per value for every facet dimension.

        Args:
            predicate: Base filter predicate shared with the ranked query
            request_id: Request ID for log correlation

        Returns:
            Dict mapping dimension -> buckets (count descending, capped). A
            dimension whose query fails maps to an empty tuple.
        """
        dimensions = list(FacetDimension)
        results = await asyncio.gather(
            *(self._dimension(d, predicate, request_id) for d in dimensions)
        )
        return dict(zip(dimensions, results))

    async def _dimension(
        self,
        dimension: FacetDimension,
        predicate: BaseFilterPredicate,
        request_id: Optional[str],
    ) -> Tuple[FacetBucket, ...]:
        limit = self.config.facet_limit(dimension)
        try:
            # One spare row so a null bucket cannot crowd out a real value
            rows = await self.store.fetch_facet(dimension, predicate, limit + 1)
        except Exception as e:
            logger.warning(
                f"Facet query failed for {dimension.value}: {e}",
                extra={"request_id": request_id},
            )
            return ()

        return tuple(build_buckets(dimension, rows, limit))


def build_buckets(dimension: FacetDimension, rows, limit: int) -> List[FacetBucket]:
    """Drop null/empty values, sort by count descending, cap."""
    buckets = []
    for value, count in rows:
        if value is None:
            continue
        text = str(value).strip()
        if not text:
            continue
        buckets.append(FacetBucket(dimension=dimension, value=text, count=int(count)))

    buckets.sort(key=lambda b: (-b.count, b.value))
    return buckets[:limit]
