"""
Query Planner
Build the shared base filter predicate and the ranked query for a request.
"""

import logging
from typing import List, Optional

from .config import SearchConfig
from .models import (
    BaseFilterPredicate,
    ExpandedQuery,
    FilterClause,
    FilterOperator,
    RankedQuery,
    SearchRequest,
)

logger = logging.getLogger(__name__)

# Listing columns referenced by filter clauses
TOWN = "town"
CATEGORY = "category"
BRAND = "brand"
PRICE = "price"
CONDITION = "condition"
SELLER_ID = "sellerId"


class QueryPlanner:
    """
    Composes the structured filters shared by result and facet queries.

    Each present filter contributes exactly one clause; absent filters
    contribute nothing. The relevance test is never part of the predicate.
    """

    def __init__(self, config: Optional[SearchConfig] = None):
        self.config = config or SearchConfig()

    def build_predicate(self, request: SearchRequest) -> BaseFilterPredicate:
        """
        Build the base filter predicate.

        Clause order is fixed (town, category, brand, price bounds, condition,
        verified seller) so equal requests render identical SQL.

        Args:
            request: Normalized search request

        Returns:
            Immutable predicate shared by every query of this request
        """
        clauses: List[FilterClause] = []

        if request.town:
            clauses.append(FilterClause(TOWN, FilterOperator.EQ, request.town))
        if request.category:
            clauses.append(FilterClause(CATEGORY, FilterOperator.EQ, request.category))
        if request.brand:
            clauses.append(FilterClause(BRAND, FilterOperator.EQ, request.brand))

        if request.price_min is not None:
            clauses.append(FilterClause(PRICE, FilterOperator.GTE, request.price_min))
        if request.price_max is not None:
            clauses.append(FilterClause(PRICE, FilterOperator.LTE, request.price_max))

        stored_condition = request.condition.stored_value
        if stored_condition:
            clauses.append(FilterClause(CONDITION, FilterOperator.IEQ, stored_condition))

        # Verification is a seller attribute resolved from the seller record,
        # never the listing's featured flag.
        if request.verified_only:
            clauses.append(FilterClause(SELLER_ID, FilterOperator.SELLER_VERIFIED, True))

        return BaseFilterPredicate(clauses=tuple(clauses))

    def plan(
        self,
        request: SearchRequest,
        expanded: ExpandedQuery,
        predicate: Optional[BaseFilterPredicate] = None,
    ) -> RankedQuery:
        """Build the ranked query for one page of results."""
        if predicate is None:
            predicate = self.build_predicate(request)

        query = RankedQuery(
            predicate=predicate,
            expanded=expanded,
            sort=request.sort,
            limit=request.page_size,
            offset=request.offset,
            similarity_threshold=self.config.similarity_threshold,
        )

        logger.debug(
            f"Planned query: {len(predicate)} filters, {len(expanded.terms)} terms, "
            f"sort={request.sort.value}, limit={query.limit}, offset={query.offset}"
        )
        return query
