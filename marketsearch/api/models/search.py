"""
Search Models
Pydantic models for the listing search endpoint.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SellerBadges(CamelModel):
    """Seller trust badge attached to each item."""

    verified: bool = Field(default=False, description="Seller is verified")
    tier: str = Field(default="basic", description="Featured tier: basic, gold or diamond")


class ListingItem(CamelModel):
    """
    Single listing result.

    Contains listing information, seller badge and relevance score.
    """

    id: str = Field(..., description="Listing ID")
    title: Optional[str] = Field(None, description="Listing title")
    price: Optional[Union[int, float]] = Field(None, description="Listing price")
    image: Optional[str] = Field(None, description="Primary image URL")
    town: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    condition: Optional[str] = None
    featured: bool = Field(default=False, description="Listing is featured")

    # Seller
    seller_id: Optional[str] = Field(None, description="Seller ID")
    seller_verified: bool = False
    seller_featured_tier: str = "basic"
    seller_badges: SellerBadges = Field(default_factory=SellerBadges)

    # Relevance (null in degraded mode)
    similarity: Optional[float] = Field(None, ge=0.0, le=1.0)
    created_at: Optional[str] = Field(None, description="Creation timestamp (ISO 8601)")


class FacetValue(CamelModel):
    value: str
    count: int = Field(..., ge=0)


class Facets(CamelModel):
    """Facet counts over the filtered set, ignoring the query text."""

    towns: List[FacetValue] = Field(default_factory=list)
    categories: List[FacetValue] = Field(default_factory=list)
    brands: List[FacetValue] = Field(default_factory=list)
    conditions: List[FacetValue] = Field(default_factory=list)


class Applied(CamelModel):
    """Echo of the normalized filters."""

    q: str = ""
    town: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    condition: str = "any"
    sort: str = "newest"
    verified_only: bool = False


class SearchResponse(CamelModel):
    """
    Search response model.

    Contains one page of ranked listings, facets and paging metadata.
    """

    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Total matches across all pages")
    total_pages: int = Field(..., ge=1)
    has_more: bool
    mode: str = Field(..., description="capable (trigram similarity) or degraded (substring only)")

    items: List[ListingItem] = Field(default_factory=list)
    facets: Facets = Field(default_factory=Facets)
    applied: Applied = Field(default_factory=Applied)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "page": 1,
                "pageSize": 20,
                "total": 1,
                "totalPages": 1,
                "hasMore": False,
                "mode": "capable",
                "items": [
                    {
                        "id": "lst_1",
                        "title": "iPhone 12 64GB",
                        "price": 350,
                        "town": "Harare",
                        "category": "Phones",
                        "condition": "pre-owned",
                        "featured": False,
                        "sellerId": "usr_1",
                        "sellerVerified": True,
                        "sellerFeaturedTier": "gold",
                        "sellerBadges": {"verified": True, "tier": "gold"},
                        "similarity": 0.42,
                        "createdAt": "2024-05-01T10:00:00+00:00",
                    }
                ],
                "facets": {
                    "towns": [{"value": "Harare", "count": 1}],
                    "categories": [{"value": "Phones", "count": 1}],
                    "brands": [],
                    "conditions": [{"value": "pre-owned", "count": 1}],
                },
                "applied": {"q": "iphone", "sort": "newest", "condition": "any"},
            }
        },
    )


class ErrorResponse(BaseModel):
    """Error body for every failure."""

    error: str
