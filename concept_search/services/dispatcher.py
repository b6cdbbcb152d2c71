"""Search dispatcher: index selection, backend calls and hit extraction.

The dispatcher owns no state besides a reference to the backend holder.  It
refuses to dispatch when no backend is installed, lets backend errors
through unchanged, and treats a response without a usable ``hits`` section
as a server error rather than an empty result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from concept_search.interfaces.search_backend import ISearchBackend, SearchRequest
from concept_search.services.backend_holder import BackendHolder
from concept_search.utils.errors import BackendUnavailableError, SearchBackendError
from concept_search.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass(frozen=True)
class SearchHit:
    """One backend hit: document id, relevance score and raw ``_source``."""

    id: str
    score: float | None
    source: Any


@dataclass(frozen=True)
class SearchHits:
    total: int
    hits: list[SearchHit]


class SearchDispatcher:
    """Send queries to the default or extended index and extract their hits."""

    def __init__(self, holder: BackendHolder, default_index: str, extended_index: str) -> None:
        self._holder = holder
        self._default_index = default_index
        self._extended_index = extended_index

    @property
    def extended_index(self) -> str:
        return self._extended_index

    def index_for(self, search_all_authorities: bool) -> str:
        return self._extended_index if search_all_authorities else self._default_index

    def _backend(self) -> ISearchBackend:
        backend = self._holder.get()
        if backend is None:
            raise BackendUnavailableError()
        return backend

    async def search(self, request: SearchRequest, index: str) -> SearchHits:
        backend = self._backend()
        raw = await backend.search(index, request)
        result = parse_hits(raw)
        _logger.debug("search_dispatched", index=index, total=result.total, returned=len(result.hits))
        return result

    async def multi_search(self, requests: list[SearchRequest], index: str) -> list[SearchHits]:
        """Dispatch *requests* in one round-trip; results keep request order."""
        if not requests:
            return []
        backend = self._backend()
        responses = await backend.multi_search(index, requests)
        if len(responses) != len(requests):
            raise SearchBackendError(
                message=(
                    f"multi-search returned {len(responses)} responses "
                    f"for {len(requests)} queries"
                ),
                provider_name=backend.get_provider_name(),
            )
        results: list[SearchHits] = []
        for raw in responses:
            if isinstance(raw, dict) and raw.get("error"):
                raise SearchBackendError(
                    message=f"multi-search query failed: {_reason(raw['error'])}",
                    provider_name=backend.get_provider_name(),
                )
            results.append(parse_hits(raw))
        _logger.debug("multi_search_dispatched", index=index, queries=len(requests))
        return results


def _reason(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("reason") or error.get("type") or error)
    return str(error)


def _total_hits(hits: dict[str, Any]) -> int:
    # 7.x reports {"value": n, "relation": "eq"}; older clusters a bare int.
    total = hits.get("total")
    if isinstance(total, dict):
        total = total.get("value")
    if isinstance(total, bool) or not isinstance(total, int):
        raise SearchBackendError(message="malformed search response: missing total hits")
    return total


def parse_hits(raw: Any) -> SearchHits:
    """Extract hits from a decoded search response.

    Raises
    ------
    SearchBackendError
        If the response lacks a well-formed ``hits`` section.
    """
    hits_section = raw.get("hits") if isinstance(raw, dict) else None
    if not isinstance(hits_section, dict):
        raise SearchBackendError(message="malformed search response: missing hits")

    total = _total_hits(hits_section)
    entries = hits_section.get("hits", [])
    if not isinstance(entries, list):
        raise SearchBackendError(message="malformed search response: hits is not a list")

    hits: list[SearchHit] = []
    for entry in entries:
        if not isinstance(entry, dict):
            _logger.warning("search_hit_skipped", reason="hit is not an object")
            continue
        score = entry.get("_score")
        hits.append(
            SearchHit(
                id=str(entry.get("_id", "")),
                score=float(score) if isinstance(score, (int, float)) else None,
                source=entry.get("_source"),
            )
        )
    return SearchHits(total=total, hits=hits)
