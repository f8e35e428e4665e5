"""
Ranking Policy
Relevance inclusion rule and ORDER BY policy for both match modes.

Capable mode orders by:
    featured DESC (featuredFirst only), sim DESC, secondary sort, id DESC
Degraded mode is the same without the sim term.
"""

from typing import List, Optional, Tuple

from .models import MatchMode, OrderTerm, SortKey

SIMILARITY_COLUMN = "sim"

_SECONDARY_SORT = {
    SortKey.NEWEST: (OrderTerm("createdAt", descending=True),),
    SortKey.PRICE_ASC: (
        OrderTerm("price", descending=False),
        OrderTerm("createdAt", descending=True),
    ),
    SortKey.PRICE_DESC: (
        OrderTerm("price", descending=True),
        OrderTerm("createdAt", descending=True),
    ),
    SortKey.FEATURED_FIRST: (OrderTerm("createdAt", descending=True),),
}

_TIE_BREAK = OrderTerm("id", descending=True)


def order_terms(sort: SortKey, mode: MatchMode) -> Tuple[OrderTerm, ...]:
    """
    Full ORDER BY policy for a sort key and match mode.

    The final id tie-break keeps page boundaries stable across requests.
    """
    terms: List[OrderTerm] = []
    if sort is SortKey.FEATURED_FIRST:
        terms.append(OrderTerm("featured", descending=True))
    if mode is MatchMode.CAPABLE:
        terms.append(OrderTerm(SIMILARITY_COLUMN, descending=True))
    terms.extend(_SECONDARY_SORT[sort])
    terms.append(_TIE_BREAK)
    return tuple(terms)


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def substring_pattern(query_text: str) -> str:
    return f"%{escape_like(query_text)}%"


def is_included(
    query_text: str,
    mode: MatchMode,
    sim: Optional[float],
    title: Optional[str],
    description: Optional[str],
    threshold: float,
) -> bool:
    """
    Relevance inclusion rule; render_ranked_query emits the same test in SQL.

    A row passes when the query is empty, when (capable mode) its best
    similarity exceeds the threshold, or when the title or description
    contains the query text. The substring branch also applies in capable
    mode, so a short typed phrase is never dropped for scoring low.
    """
    if not query_text:
        return True
    if mode is MatchMode.CAPABLE and sim is not None and sim > threshold:
        return True
    needle = query_text.lower()
    return needle in (title or "").lower() or needle in (description or "").lower()
