"""
Filter Normalizer
Parse raw query parameters into a bounded SearchRequest.

Never raises: malformed values are dropped, clamped or replaced by the most
permissive default.
"""

import logging
import math
import re
from typing import Mapping, Optional

from .config import SearchConfig
from .models import Condition, SearchRequest, SortKey

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]+")

_TRUE_WORDS = {"1", "true", "yes"}

_CONDITION_ALIASES = {
    "any": Condition.ANY,
    "all": Condition.ANY,
    "new": Condition.NEW,
    "brand new": Condition.NEW,
    "brand-new": Condition.NEW,
    "used": Condition.USED,
    "pre-owned": Condition.USED,
    "preowned": Condition.USED,
}

_SORT_ALIASES = {
    "newest": SortKey.NEWEST,
    "new": SortKey.NEWEST,
    "priceasc": SortKey.PRICE_ASC,
    "price_asc": SortKey.PRICE_ASC,
    "pricedesc": SortKey.PRICE_DESC,
    "price_desc": SortKey.PRICE_DESC,
    "featured": SortKey.FEATURED_FIRST,
    "featuredfirst": SortKey.FEATURED_FIRST,
    "top": SortKey.FEATURED_FIRST,
}


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip control characters and whitespace; empty becomes None."""
    if value is None:
        return None
    text = _CONTROL_CHARS.sub("", str(value)).strip()
    return text or None


def normalize_query_text(value: Optional[str]) -> str:
    return (clean_text(value) or "").lower()


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a finite number, or None."""
    text = clean_text(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_int(value: Optional[str], default: int) -> int:
    number = parse_number(value)
    if number is None:
        return default
    return int(number)


def parse_bool(value: Optional[str]) -> bool:
    text = clean_text(value)
    return text is not None and text.lower() in _TRUE_WORDS


def parse_condition(value: Optional[str]) -> Condition:
    text = clean_text(value)
    if text is None:
        return Condition.ANY
    return _CONDITION_ALIASES.get(text.lower(), Condition.ANY)


def parse_sort(value: Optional[str]) -> SortKey:
    text = clean_text(value)
    if text is None:
        return SortKey.NEWEST
    return _SORT_ALIASES.get(text.lower(), SortKey.NEWEST)


def _price(value: Optional[str]) -> Optional[float]:
    number = parse_number(value)
    if number is None:
        return None
    return max(0.0, number)


class FilterNormalizer:
    """Turns raw string parameters into a SearchRequest."""

    def __init__(self, config: Optional[SearchConfig] = None):
        self.config = config or SearchConfig()

    def normalize(self, params: Mapping[str, Optional[str]]) -> SearchRequest:
        """
        Normalize raw parameters.

        Args:
            params: Query parameters (q, town, category, brand, minPrice,
                maxPrice, condition, sort, verifiedOnly, page, pageSize)

        Returns:
            A SearchRequest with every field bounded
        """
        price_min = _price(params.get("minPrice"))
        price_max = _price(params.get("maxPrice"))
        if price_min is not None and price_max is not None and price_min > price_max:
            logger.debug(f"Swapping reversed price range {price_min} > {price_max}")
            price_min, price_max = price_max, price_min

        page = max(1, parse_int(params.get("page"), 1))
        page_size = parse_int(params.get("pageSize"), self.config.default_page_size)
        page_size = min(self.config.max_page_size, max(1, page_size))

        return SearchRequest(
            query_text=normalize_query_text(params.get("q")),
            town=clean_text(params.get("town")),
            category=clean_text(params.get("category")),
            brand=clean_text(params.get("brand")),
            price_min=price_min,
            price_max=price_max,
            condition=parse_condition(params.get("condition")),
            verified_only=parse_bool(params.get("verifiedOnly")),
            sort=parse_sort(params.get("sort")),
            page=page,
            page_size=page_size,
        )
