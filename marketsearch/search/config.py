"""
Search Configuration
Tunables for query planning, ranking, facets and pagination.
"""

from dataclasses import dataclass, field
from typing import Dict

from .models import FacetDimension


@dataclass(frozen=True)
class TableNames:
    """Quoted table identifiers in the listing store."""

    listing: str = '"Listing"'
    user: str = '"User"'
    synonym: str = '"Synonym"'


@dataclass(frozen=True)
class SearchConfig:
    """Engine-level configuration (no environment access here)."""

    # Ranking
    similarity_threshold: float = 0.2

    # Pagination bounds
    default_page_size: int = 20
    max_page_size: int = 50
    max_result_window: int = 10_000

    # Facet caps per dimension
    facet_limits: Dict[FacetDimension, int] = field(
        default_factory=lambda: {
            FacetDimension.TOWN: 20,
            FacetDimension.CATEGORY: 20,
            FacetDimension.BRAND: 20,
            FacetDimension.CONDITION: 5,
        }
    )

    # Edge cache policy
    edge_cache_ttl_seconds: int = 60
    cacheable_max_page: int = 10
    cacheable_max_page_size: int = 48

    tables: TableNames = field(default_factory=TableNames)

    def __post_init__(self):
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be within [0, 1], got {self.similarity_threshold}"
            )
        if self.max_page_size < 1:
            raise ValueError(f"max_page_size must be >= 1, got {self.max_page_size}")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"default_page_size must be within [1, {self.max_page_size}], "
                f"got {self.default_page_size}"
            )

    def facet_limit(self, dimension: FacetDimension) -> int:
        return self.facet_limits.get(dimension, 20)
