"""
Paginator
Page arithmetic over the window count returned with the ranked rows.
"""

import math

from .config import SearchConfig
from .models import PageInfo, SearchRequest


def total_pages(total: int, page_size: int) -> int:
    """ceil(total / page_size), never less than 1."""
    return max(1, math.ceil(max(0, total) / page_size))


class Paginator:
    def __init__(self, config: SearchConfig):
        self.config = config

    def beyond_result_window(self, request: SearchRequest) -> bool:
        """True when the offset is too deep to scan for rows."""
        return request.offset > self.config.max_result_window

    def page_info(self, request: SearchRequest, total: int) -> PageInfo:
        pages = total_pages(total, request.page_size)
        return PageInfo(
            page=request.page,
            page_size=request.page_size,
            total=max(0, total),
            total_pages=pages,
            has_more=request.page < pages,
        )
