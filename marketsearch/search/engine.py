"""
Search Engine
End-to-end listing search pipeline.

Workflow:
1. Build the base filter predicate and start facet aggregation on it
2. Expand the query text with synonyms
3. Plan and run the ranked query (capable mode, degraded fallback)
4. Resolve seller badges for the returned rows only
5. Join facets and assemble the result page
"""

import asyncio
import logging
import time
from typing import Mapping, Optional

from .assembler import ResponseAssembler
from .badges import SellerBadgeResolver
from .config import SearchConfig
from .degradation import DegradationController
from .facets import FacetAggregator
from .models import RankedQuery, RankedRows, RequestContext, SearchRequest, SearchResultPage
from .normalizer import FilterNormalizer
from .pagination import Paginator
from .planner import QueryPlanner
from .store import SearchStore
from .synonyms import SynonymExpander

logger = logging.getLogger(__name__)


class SearchEngine:
    """
    Request-scoped search pipeline over a SearchStore.

    Holds no per-request state, so one instance may serve concurrent
    requests. Facet queries run concurrently with ranking and badge
    resolution; only the final assembly joins them.
    """

    def __init__(self, store: SearchStore, config: Optional[SearchConfig] = None):
        """
        Initialize the search engine.

        Args:
            store: Listing store adapter
            config: Search configuration
        """
        self.store = store
        self.config = config or SearchConfig()

        self.normalizer = FilterNormalizer(self.config)
        self.synonyms = SynonymExpander(store)
        self.planner = QueryPlanner(self.config)
        self.ranker = DegradationController(store)
        self.badges = SellerBadgeResolver(store)
        self.facets = FacetAggregator(store, self.config)
        self.paginator = Paginator(self.config)
        self.assembler = ResponseAssembler(self.config)

    def normalize(self, params: Mapping[str, Optional[str]]) -> SearchRequest:
        return self.normalizer.normalize(params)

    async def search(
        self,
        request: SearchRequest,
        context: RequestContext,
        request_id: Optional[str] = None,
    ) -> SearchResultPage:
        """
        Run a search.

        Args:
            request: Normalized search request
            context: Transport facts (anonymity, paging) from the boundary
            request_id: Request ID for log correlation

        Returns:
            Assembled SearchResultPage

        Raises:
            StoreError: If the ranked rows cannot be produced even in
                degraded mode
        """
        start_time = time.time()

        predicate = self.planner.build_predicate(request)
        facets_task = asyncio.ensure_future(self.facets.aggregate(predicate, request_id))

        try:
            expanded = await self.synonyms.expand(request.query_text)
            query = self.planner.plan(request, expanded, predicate)

            ranked = await self._rank(query, request, request_id)
            badges = await self.badges.resolve([listing.seller_id for listing in ranked.rows])
            facets = await facets_task
        finally:
            if not facets_task.done():
                facets_task.cancel()
                # Wait for the cancelled aggregation so no facet query outlives the request
                await asyncio.gather(facets_task, return_exceptions=True)

        page_info = self.paginator.page_info(request, ranked.total or 0)
        page = self.assembler.assemble(request, context, ranked, page_info, badges, facets)

        total_time_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Search completed: q='{request.query_text}', {page_info.total} matches, "
            f"{len(page.items)} items, mode={ranked.mode.value} in {total_time_ms:.2f}ms",
            extra={"request_id": request_id},
        )
        return page

    async def _rank(
        self, query: RankedQuery, request: SearchRequest, request_id: Optional[str]
    ) -> RankedRows:
        if self.paginator.beyond_result_window(request):
            logger.info(
                f"Offset {request.offset} beyond result window, counting only",
                extra={"request_id": request_id},
            )
            total, mode = await self.ranker.count(query, request_id=request_id)
            return RankedRows(rows=(), total=total, mode=mode)

        ranked = await self.ranker.fetch(query, request_id)
        if ranked.total is not None:
            return ranked

        # An empty page past the end carries no window count
        total = 0
        if request.offset > 0:
            total, _ = await self.ranker.count(query, mode=ranked.mode, request_id=request_id)
        return RankedRows(rows=ranked.rows, total=total, mode=ranked.mode)
