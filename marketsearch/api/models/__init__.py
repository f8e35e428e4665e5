"""
API Models
Pydantic response models for the API endpoints.
"""

from .search import (
    Applied,
    ErrorResponse,
    FacetValue,
    Facets,
    ListingItem,
    SearchResponse,
    SellerBadges,
)

__all__ = [
    "Applied",
    "ErrorResponse",
    "FacetValue",
    "Facets",
    "ListingItem",
    "SearchResponse",
    "SellerBadges",
]
