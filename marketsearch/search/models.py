"""
Search Domain Models
Typed value objects passed between the planner, ranking, facet and assembly stages.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class Condition(Enum):
    """Listing condition filter."""

    ANY = "any"
    NEW = "new"
    USED = "used"

    @property
    def stored_value(self) -> Optional[str]:
        """Lower-cased value as written on listing rows (None for ANY)."""
        return _CONDITION_STORED_VALUES.get(self)


_CONDITION_STORED_VALUES = {
    Condition.NEW: "brand new",
    Condition.USED: "pre-owned",
}


class SortKey(Enum):
    """Secondary sort order requested by the caller."""

    NEWEST = "newest"
    PRICE_ASC = "priceAsc"
    PRICE_DESC = "priceDesc"
    FEATURED_FIRST = "featuredFirst"


class Tier(Enum):
    """Seller featured tier."""

    BASIC = "basic"
    GOLD = "gold"
    DIAMOND = "diamond"


class FacetDimension(Enum):
    """Dimensions counted for the facet sidebar."""

    TOWN = "town"
    CATEGORY = "category"
    BRAND = "brand"
    CONDITION = "condition"

    @property
    def response_key(self) -> str:
        return _FACET_RESPONSE_KEYS[self]


_FACET_RESPONSE_KEYS = {
    FacetDimension.TOWN: "towns",
    FacetDimension.CATEGORY: "categories",
    FacetDimension.BRAND: "brands",
    FacetDimension.CONDITION: "conditions",
}


class MatchMode(Enum):
    """
    Execution policy for the ranked query.

    CAPABLE uses trigram similarity plus substring matching; DEGRADED uses
    substring matching only and is chosen per request after the store reports
    that the similarity function is unavailable.
    """

    CAPABLE = "capable"
    DEGRADED = "degraded"


class FilterOperator(Enum):
    """Operators a base filter clause may use."""

    EQ = "="
    GTE = ">="
    LTE = "<="
    IEQ = "ieq"  # case-insensitive equality
    SELLER_VERIFIED = "seller_verified"


@dataclass(frozen=True)
class SearchRequest:
    """
    Normalized search filters.

    Always built through the filter normalizer, so every field is already
    bounded: page >= 1, 1 <= page_size <= max page size, price_min <= price_max.
    """

    query_text: str = ""
    town: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    condition: Condition = Condition.ANY
    verified_only: bool = False
    sort: SortKey = SortKey.NEWEST
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def applied(self) -> Dict[str, Any]:
        """Echo of the normalized filters for the response body."""
        return {
            "q": self.query_text,
            "town": self.town,
            "category": self.category,
            "brand": self.brand,
            "minPrice": self.price_min,
            "maxPrice": self.price_max,
            "condition": self.condition.value,
            "sort": self.sort.value,
            "verifiedOnly": self.verified_only,
        }


@dataclass(frozen=True)
class ExpandedQuery:
    """Query text plus synonym terms; the first term is always the query text."""

    terms: Tuple[str, ...] = ("",)

    def __post_init__(self):
        if not self.terms:
            raise ValueError("ExpandedQuery needs at least the canonical term")

    @property
    def canonical(self) -> str:
        return self.terms[0]

    @property
    def synonyms(self) -> Tuple[str, ...]:
        return self.terms[1:]

    @property
    def is_empty(self) -> bool:
        return self.canonical == ""


@dataclass(frozen=True)
class FilterClause:
    """One structured filter: column, operator, bound value."""

    column: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class BaseFilterPredicate:
    """
    Structured (non-relevance) part of the WHERE clause.

    Built once per request and shared unchanged by the ranked query and every
    facet query.
    """

    clauses: Tuple[FilterClause, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.clauses

    def __len__(self) -> int:
        return len(self.clauses)

    def __iter__(self):
        return iter(self.clauses)


@dataclass(frozen=True)
class OrderTerm:
    """Single ORDER BY term. Nulls always sort last."""

    column: str
    descending: bool = False


@dataclass(frozen=True)
class RankedQuery:
    """Everything the store needs to produce one ranked, paginated page."""

    predicate: BaseFilterPredicate
    expanded: ExpandedQuery
    sort: SortKey
    limit: int
    offset: int
    similarity_threshold: float = 0.2

    @property
    def query_text(self) -> str:
        return self.expanded.canonical


@dataclass(frozen=True)
class ScoredListing:
    """A listing row plus its per-request similarity score (None when degraded)."""

    id: str
    title: str
    price: Optional[Union[int, float]] = None
    image: Optional[str] = None
    town: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    condition: Optional[str] = None
    featured: bool = False
    created_at: Optional[Any] = None
    seller_id: Optional[str] = None
    similarity: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any], mode: MatchMode) -> "ScoredListing":
        """Build from a store row keyed by column name."""
        similarity = None
        if mode is MatchMode.CAPABLE and row.get("sim") is not None:
            similarity = min(1.0, max(0.0, float(row["sim"])))

        seller_id = row.get("sellerId")
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            price=_as_number(row.get("price")),
            image=row.get("image"),
            town=row.get("town"),
            category=row.get("category"),
            brand=row.get("brand"),
            condition=row.get("condition"),
            featured=bool(row.get("featured")),
            created_at=row.get("createdAt"),
            seller_id=str(seller_id) if seller_id else None,
            similarity=similarity,
        )

    @property
    def created_at_iso(self) -> str:
        if isinstance(self.created_at, (datetime, date)):
            return self.created_at.isoformat()
        return str(self.created_at or "")


def _as_number(value: Any) -> Optional[Union[int, float]]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


@dataclass(frozen=True)
class SellerBadge:
    """Resolved seller trust badge."""

    seller_id: str
    verified: bool = False
    tier: Tier = Tier.BASIC

    def to_dict(self) -> Dict[str, Any]:
        return {"verified": self.verified, "tier": self.tier.value}


@dataclass(frozen=True)
class FacetBucket:
    dimension: FacetDimension
    value: str
    count: int


@dataclass(frozen=True)
class RankedRows:
    """Output of the ranking stage for one page."""

    rows: Tuple[ScoredListing, ...]
    total: Optional[int]
    mode: MatchMode


@dataclass(frozen=True)
class PageInfo:
    page: int
    page_size: int
    total: int
    total_pages: int
    has_more: bool


@dataclass(frozen=True)
class RequestContext:
    """Transport facts decided at the HTTP boundary."""

    is_anonymous: bool
    page: int
    page_size: int


@dataclass(frozen=True)
class CachePolicy:
    """Cache headers to attach to the response."""

    cacheable: bool
    ttl_seconds: int = 0

    def headers(self) -> Dict[str, str]:
        if self.cacheable:
            value = f"public, s-maxage={self.ttl_seconds}, stale-while-revalidate={self.ttl_seconds}"
            return {
                "Cache-Control": value,
                "CDN-Cache-Control": value,
                "Vary": "Accept-Encoding",
            }
        return NO_STORE_HEADERS.copy()


NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Vary": "Authorization, Cookie, Accept-Encoding",
}


@dataclass(frozen=True)
class ListingHit:
    """A ranked listing with its seller badge merged in."""

    listing: ScoredListing
    badge: SellerBadge

    def to_dict(self) -> Dict[str, Any]:
        listing = self.listing
        return {
            "id": listing.id,
            "title": listing.title,
            "price": listing.price,
            "image": listing.image,
            "town": listing.town,
            "category": listing.category,
            "brand": listing.brand,
            "condition": listing.condition,
            "featured": listing.featured,
            "sellerId": listing.seller_id,
            "sellerVerified": self.badge.verified,
            "sellerFeaturedTier": self.badge.tier.value,
            "sellerBadges": self.badge.to_dict(),
            "similarity": listing.similarity,
            "createdAt": listing.created_at_iso,
        }


@dataclass(frozen=True)
class SearchResultPage:
    """
    Fully assembled search response.

    Created fresh per request and never mutated after assembly.
    """

    items: Tuple[ListingHit, ...]
    page_info: PageInfo
    facets: Mapping[FacetDimension, Tuple[FacetBucket, ...]]
    mode: MatchMode
    request: SearchRequest
    cache_policy: CachePolicy = field(default_factory=lambda: CachePolicy(cacheable=False))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the outward response contract."""
        facets: Dict[str, List[Dict[str, Any]]] = {}
        for dimension in FacetDimension:
            buckets = self.facets.get(dimension, ())
            facets[dimension.response_key] = [
                {"value": b.value, "count": b.count} for b in buckets
            ]

        return {
            "page": self.page_info.page,
            "pageSize": self.page_info.page_size,
            "total": self.page_info.total,
            "totalPages": self.page_info.total_pages,
            "hasMore": self.page_info.has_more,
            "mode": self.mode.value,
            "items": [hit.to_dict() for hit in self.items],
            "facets": facets,
            "applied": self.request.applied(),
        }
