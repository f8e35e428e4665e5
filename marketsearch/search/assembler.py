"""
Response Assembler
Merge ranked rows, seller badges, facets and page metadata; pick cache policy.
"""

import logging
from typing import Dict, Mapping, Optional, Tuple

from .config import SearchConfig
from .models import (
    CachePolicy,
    FacetBucket,
    FacetDimension,
    ListingHit,
    PageInfo,
    RankedRows,
    RequestContext,
    SearchRequest,
    SearchResultPage,
    SellerBadge,
)

logger = logging.getLogger(__name__)


class ResponseAssembler:
    def __init__(self, config: Optional[SearchConfig] = None):
        self.config = config or SearchConfig()

    def cache_policy(self, context: RequestContext) -> CachePolicy:
        """
        Decide whether the response may be stored by shared caches.

        Only anonymous requests within bounded paging are edge-cacheable;
        anything personalized or deep-paged is marked no-store.
        """
        cacheable = (
            context.is_anonymous
            and context.page <= self.config.cacheable_max_page
            and context.page_size <= self.config.cacheable_max_page_size
        )
        if cacheable:
            return CachePolicy(cacheable=True, ttl_seconds=self.config.edge_cache_ttl_seconds)
        return CachePolicy(cacheable=False)

    def assemble(
        self,
        request: SearchRequest,
        context: RequestContext,
        ranked: RankedRows,
        page_info: PageInfo,
        badges: Mapping[str, SellerBadge],
        facets: Mapping[FacetDimension, Tuple[FacetBucket, ...]],
    ) -> SearchResultPage:
        """
        Build the immutable result page.

        Rows whose seller has no resolved badge get the default badge. Under
        verifiedOnly the store already proved the seller verified, so the
        default is verified there.
        """
        items = []
        for listing in ranked.rows:
            badge = badges.get(listing.seller_id) if listing.seller_id else None
            if badge is None:
                badge = SellerBadge(
                    seller_id=listing.seller_id or "",
                    verified=request.verified_only,
                )
            items.append(ListingHit(listing=listing, badge=badge))

        complete_facets: Dict[FacetDimension, Tuple[FacetBucket, ...]] = {
            dimension: tuple(facets.get(dimension, ())) for dimension in FacetDimension
        }

        return SearchResultPage(
            items=tuple(items),
            page_info=page_info,
            facets=complete_facets,
            mode=ranked.mode,
            request=request,
            cache_policy=self.cache_policy(context),
        )
