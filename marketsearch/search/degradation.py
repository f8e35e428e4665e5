"""
Degradation Controller
Run the ranked query in capable mode, falling back to substring-only mode
when the store reports that similarity is unavailable.

The capability is probed per request and never cached, so the fallback
stops as soon as the store regains the similarity function.
"""

import logging
from typing import Optional, Tuple

from .errors import SimilarityUnavailableError
from .models import MatchMode, RankedQuery, RankedRows, ScoredListing
from .store import SearchStore

logger = logging.getLogger(__name__)


class DegradationController:
    """
    Two-state execution policy for the ranked query.

    The retry is strictly sequential: it only fires after the capable attempt
    failed with a capability error. Any other store failure propagates.
    """

    def __init__(self, store: SearchStore):
        self.store = store

    async def fetch(self, query: RankedQuery, request_id: Optional[str] = None) -> RankedRows:
        """
        Fetch one ranked page.

        Args:
            query: Planned ranked query
            request_id: Request ID for log correlation

        Returns:
            RankedRows with the mode that actually produced them

        Raises:
            StoreError: If the page cannot be produced in either mode
        """
        try:
            return await self._fetch(query, MatchMode.CAPABLE)
        except SimilarityUnavailableError as e:
            logger.warning(
                f"Similarity unavailable, retrying in substring mode: {e}",
                extra={"request_id": request_id},
            )

        return await self._fetch(query, MatchMode.DEGRADED)

    async def count(
        self,
        query: RankedQuery,
        mode: Optional[MatchMode] = None,
        request_id: Optional[str] = None,
    ) -> Tuple[int, MatchMode]:
        """
        Count matching rows.

        With an explicit mode the count runs only in that mode; otherwise it
        follows the same capable-then-degraded policy as fetch().

        Returns:
            Tuple of (total, mode the count ran in)
        """
        if mode is not None:
            return await self.store.count_matches(query, mode), mode

        try:
            total = await self.store.count_matches(query, MatchMode.CAPABLE)
            return total, MatchMode.CAPABLE
        except SimilarityUnavailableError as e:
            logger.warning(
                f"Similarity unavailable, counting in substring mode: {e}",
                extra={"request_id": request_id},
            )
        total = await self.store.count_matches(query, MatchMode.DEGRADED)
        return total, MatchMode.DEGRADED

    async def _fetch(self, query: RankedQuery, mode: MatchMode) -> RankedRows:
        rows = await self.store.fetch_ranked(query, mode)
        listings = tuple(ScoredListing.from_row(row, mode) for row in rows)
        total = int(rows[0]["_total"]) if rows and rows[0].get("_total") is not None else None
        return RankedRows(rows=listings, total=total, mode=mode)
