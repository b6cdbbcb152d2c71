"""Abstract base class for the search backend capability.

The service only ever needs three things from the search cluster: run one
query, run a bundle of queries in a single round-trip, and report cluster
health.  Everything else about the backend library or transport stays behind
this interface so tests can swap in canned responses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# Search type that gathers term statistics from every shard before scoring,
# so idf is global and scores from different shards are comparable.
DFS_QUERY_THEN_FETCH = "dfs_query_then_fetch"


@dataclass(frozen=True)
class SearchRequest:
    """One structured query ready to be sent to the backend.

    Attributes
    ----------
    body:
        The query DSL body (``query``, ``size``, ``min_score``, ...).
    search_type:
        Optional backend search type, e.g. :data:`DFS_QUERY_THEN_FETCH`.
    """

    body: dict[str, Any] = field(default_factory=dict)
    search_type: str | None = None

    @property
    def size(self) -> int | None:
        return self.body.get("size")


# Concrete implementation: ElasticsearchHTTPBackend (concept_search/providers/search_backend/)
class ISearchBackend(ABC):
    """Contract for the full-text search cluster holding concept documents.

    All methods return the backend's raw decoded JSON; interpreting hits is
    the dispatcher's job.
    """

    @abstractmethod
    async def search(self, index: str, request: SearchRequest) -> dict[str, Any]:
        """Run a single query against *index*.

        Parameters
        ----------
        index:
            Index or alias name to search.
        request:
            The query to execute.

        Returns
        -------
        dict
            The decoded search response (``hits.total``, ``hits.hits``...).

        Raises
        ------
        BackendUnavailableError
            If no backend node can be reached.
        SearchBackendError
            If the backend rejects the query or returns an unusable body.
        """

    @abstractmethod
    async def multi_search(
        self, index: str, requests: list[SearchRequest]
    ) -> list[dict[str, Any]]:
        """Run *requests* against *index* in one round-trip.

        Returns one decoded response per request, in request order.  A
        per-request failure is reported inside its own response under
        ``error``, as the backend does.
        """

    @abstractmethod
    async def cluster_health(self) -> dict[str, Any]:
        """Return the cluster health document (``status``, ``number_of_nodes``...)."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this backend (e.g. ``"elasticsearch"``)."""

    async def close(self) -> None:
        """Release network resources.  The default has nothing to release."""
