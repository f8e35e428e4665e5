"""
Search Engine Errors
Typed failures raised by store adapters and the search pipeline.
"""


class SearchEngineError(Exception):
    """Base exception for the search engine."""

    pass


class StoreError(SearchEngineError):
    """Raised when a store query fails."""

    pass


class SimilarityUnavailableError(StoreError):
    """
    Raised when the store has no usable similarity function.

    This is a capability error: the ranking stage answers it by re-running the
    same query in substring-only mode instead of failing the request.
    """

    pass
