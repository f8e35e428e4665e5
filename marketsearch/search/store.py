"""
Search Store Interface
Contract between the search pipeline and the listing store.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .models import BaseFilterPredicate, FacetDimension, MatchMode, RankedQuery


class SearchStore(ABC):
    """
    Read-only access to listings, sellers and synonyms.

    Every method may raise StoreError. fetch_ranked and count_matches raise
    SimilarityUnavailableError when asked for MatchMode.CAPABLE and the
    store cannot compute trigram similarity.
    """

    @abstractmethod
    async def fetch_synonyms(self, term: str) -> List[str]:
        """Expansion words for a normalized term (may be empty)."""

    @abstractmethod
    async def fetch_ranked(self, query: RankedQuery, mode: MatchMode) -> List[Mapping[str, Any]]:
        """
        One page of filtered, ranked listing rows.

        Each row carries the listing columns, ``sim`` (CAPABLE mode) and
        ``_total``, the window count of all matching rows.
        """

    @abstractmethod
    async def count_matches(self, query: RankedQuery, mode: MatchMode) -> int:
        """Number of rows the ranked query would match, ignoring limit/offset."""

    @abstractmethod
    async def fetch_facet(
        self,
        dimension: FacetDimension,
        predicate: BaseFilterPredicate,
        limit: int,
    ) -> List[Tuple[Any, int]]:
        """(value, count) pairs for one dimension, most frequent first."""

    @abstractmethod
    async def fetch_sellers(self, seller_ids: Sequence[str]) -> Dict[str, Any]:
        """Raw seller records keyed by seller id."""

    @abstractmethod
    async def ping(self) -> bool:
        """True when the store answers queries."""

    @abstractmethod
    async def similarity_available(self) -> bool:
        """
        True when trigram similarity can be computed (MatchMode.CAPABLE).

        Raises:
            StoreError: If the store itself is unreachable
        """
