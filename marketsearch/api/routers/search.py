"""
Search Endpoint
GET /api/search - Listing search with filters, facets and seller badges.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from ...search import SearchEngine, SearchEngineError
from ..dependencies import (
    enforce_search_rate_limit,
    get_request_context,
    get_request_id,
    get_search_engine,
)
from ..errors import SearchError
from ..models.search import ErrorResponse, SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])


@router.get(
    "/search",
    response_model=SearchResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(enforce_search_rate_limit)],
    responses={429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def search(
    request: Request,
    response: Response,
    engine: SearchEngine = Depends(get_search_engine),
    request_id: str = Depends(get_request_id),
) -> SearchResponse:
    """
    Search listings.

    Query parameters (all optional, all normalized leniently):
    q, town, category, brand, minPrice, maxPrice, condition, verifiedOnly,
    sort, page, pageSize.

    Workflow:
    1. Normalize query parameters into a search request
    2. Rank matches (trigram similarity, substring fallback)
    3. Attach seller badges and facet counts
    4. Apply cache headers for the response

    Returns:
        One page of results with facets and paging metadata
    """
    search_request = engine.normalize(dict(request.query_params))
    context = get_request_context(request, search_request)

    logger.info(
        f"Search request: q='{search_request.query_text}', page={search_request.page}, "
        f"pageSize={search_request.page_size}",
        extra={"request_id": request_id},
    )

    try:
        page = await engine.search(search_request, context, request_id=request_id)
    except SearchEngineError as e:
        logger.error(
            f"Search failed: {e}",
            exc_info=True,
            extra={"request_id": request_id},
        )
        raise SearchError(details={"request_id": request_id})

    for name, value in page.cache_policy.headers().items():
        response.headers[name] = value

    return SearchResponse.model_validate(page.to_dict())
