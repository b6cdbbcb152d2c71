"""Abstract capability contracts implemented by concept_search.providers."""

from concept_search.interfaces.search_backend import (
    DFS_QUERY_THEN_FETCH,
    ISearchBackend,
    SearchRequest,
)

__all__ = ["DFS_QUERY_THEN_FETCH", "ISearchBackend", "SearchRequest"]
