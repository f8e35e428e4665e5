"""
Synonym Expander
Expand normalized query text into the query term plus synonym terms.
"""

import logging
from typing import List

from .models import ExpandedQuery
from .store import SearchStore

logger = logging.getLogger(__name__)


class SynonymExpander:
    """
    Looks up expansion words for the normalized query text.

    Lookups are advisory: any failure yields only the original term.
    """

    def __init__(self, store: SearchStore):
        self.store = store

    async def expand(self, query_text: str) -> ExpandedQuery:
        if not query_text:
            return ExpandedQuery(terms=("",))

        try:
            words = await self.store.fetch_synonyms(query_text)
        except Exception as e:
            logger.warning(f"Synonym lookup failed for '{query_text}': {e}")
            return ExpandedQuery(terms=(query_text,))

        synonyms: List[str] = []
        for word in words or []:
            term = str(word or "").strip().lower()
            if term and term != query_text and term not in synonyms:
                synonyms.append(term)

        expanded = ExpandedQuery(terms=(query_text, *synonyms))
        if expanded.synonyms:
            logger.debug(f"Expanded '{query_text}' with {len(expanded.synonyms)} synonyms")
        return expanded
