"""
Listing Search Module
Query composition, ranking with degraded fallback, seller badges and facets.
"""

from .assembler import ResponseAssembler
from .badges import SellerBadgeResolver, resolve_badge
from .config import SearchConfig, TableNames
from .degradation import DegradationController
from .engine import SearchEngine
from .errors import SearchEngineError, SimilarityUnavailableError, StoreError
from .facets import FacetAggregator
from .models import (
    BaseFilterPredicate,
    CachePolicy,
    Condition,
    ExpandedQuery,
    FacetBucket,
    FacetDimension,
    MatchMode,
    RankedQuery,
    RequestContext,
    ScoredListing,
    SearchRequest,
    SearchResultPage,
    SellerBadge,
    SortKey,
    Tier,
)
from .normalizer import FilterNormalizer
from .pagination import Paginator
from .planner import QueryPlanner
from .store import SearchStore
from .synonyms import SynonymExpander

__all__ = [
    "ResponseAssembler",
    "SellerBadgeResolver",
    "resolve_badge",
    "SearchConfig",
    "TableNames",
    "DegradationController",
    "SearchEngine",
    "SearchEngineError",
    "SimilarityUnavailableError",
    "StoreError",
    "FacetAggregator",
    "BaseFilterPredicate",
    "CachePolicy",
    "Condition",
    "ExpandedQuery",
    "FacetBucket",
    "FacetDimension",
    "MatchMode",
    "RankedQuery",
    "RequestContext",
    "ScoredListing",
    "SearchRequest",
    "SearchResultPage",
    "SellerBadge",
    "SortKey",
    "Tier",
    "FilterNormalizer",
    "Paginator",
    "QueryPlanner",
    "SearchStore",
    "SynonymExpander",
]
