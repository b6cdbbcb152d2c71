"""Unit tests for SearchDispatcher and hit parsing."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from concept_search.interfaces.search_backend import SearchRequest
from concept_search.services.backend_holder import BackendHolder
from concept_search.services.dispatcher import SearchDispatcher, parse_hits
from concept_search.utils.errors import BackendUnavailableError, SearchBackendError
from tests.conftest import UUID_1, StubSearchBackend, es_hit, es_source, search_response


def _dispatcher(backend: StubSearchBackend | None) -> SearchDispatcher:
    return SearchDispatcher(BackendHolder(backend), "concepts", "all-concepts")


class _BlockingBackend(StubSearchBackend):
    """Backend whose search hangs until released, recording cancellation."""

    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.cancelled = False

    async def search(self, index: str, request: SearchRequest) -> dict[str, Any]:
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return search_response()


# ======================================================================
# parse_hits
# ======================================================================


class TestParseHits:
    def test_parses_hits(self) -> None:
        result = parse_hits(search_response(es_hit(es_source(UUID_1, "Eric"), score=3.2)))
        assert result.total == 1
        assert result.hits[0].id == UUID_1
        assert result.hits[0].score == 3.2
        assert result.hits[0].source["prefLabel"] == "Eric"

    def test_legacy_integer_total(self) -> None:
        raw = {"hits": {"total": 7, "hits": []}}
        assert parse_hits(raw).total == 7

    def test_null_score(self) -> None:
        result = parse_hits(search_response(es_hit(es_source(UUID_1, "Eric"), score=None)))
        assert result.hits[0].score is None

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            [],
            {},
            {"hits": None},
            {"hits": {"hits": []}},
            {"hits": {"total": {"relation": "eq"}, "hits": []}},
            {"hits": {"total": "3", "hits": []}},
            {"hits": {"total": 1, "hits": "nope"}},
        ],
    )
    def test_malformed_responses_are_server_errors(self, raw) -> None:
        with pytest.raises(SearchBackendError):
            parse_hits(raw)


# ======================================================================
# SearchDispatcher
# ======================================================================


class TestSearchDispatcher:
    def test_index_selection(self) -> None:
        dispatcher = _dispatcher(None)
        assert dispatcher.index_for(False) == "concepts"
        assert dispatcher.index_for(True) == "all-concepts"
        assert dispatcher.extended_index == "all-concepts"

    @pytest.mark.asyncio
    async def test_no_backend_is_unavailable(self) -> None:
        with pytest.raises(BackendUnavailableError, match="no ElasticSearch client available"):
            await _dispatcher(None).search(SearchRequest(body={}), "concepts")

    @pytest.mark.asyncio
    async def test_multi_search_without_backend_is_unavailable(self) -> None:
        with pytest.raises(BackendUnavailableError):
            await _dispatcher(None).multi_search([SearchRequest(body={})], "concepts")

    @pytest.mark.asyncio
    async def test_search_sends_to_index(self) -> None:
        backend = StubSearchBackend(responses=[search_response(es_hit(es_source(UUID_1, "Eric")))])
        request = SearchRequest(body={"size": 1})

        result = await _dispatcher(backend).search(request, "all-concepts")

        assert backend.search_calls == [("all-concepts", request)]
        assert len(result.hits) == 1

    @pytest.mark.asyncio
    async def test_backend_errors_pass_through(self) -> None:
        backend = StubSearchBackend(error=SearchBackendError("elastic: Error 400 (Bad Request)"))
        with pytest.raises(SearchBackendError, match="Error 400"):
            await _dispatcher(backend).search(SearchRequest(), "concepts")

    @pytest.mark.asyncio
    async def test_backend_no_client_is_unavailable(self) -> None:
        backend = StubSearchBackend(error=BackendUnavailableError("no Elasticsearch node available"))
        with pytest.raises(BackendUnavailableError):
            await _dispatcher(backend).search(SearchRequest(), "concepts")

    @pytest.mark.asyncio
    async def test_multi_search_keeps_order(self) -> None:
        backend = StubSearchBackend(
            multi_responses=[
                [search_response(), search_response(es_hit(es_source(UUID_1, "Eric")))]
            ]
        )
        results = await _dispatcher(backend).multi_search(
            [SearchRequest(body={"q": 1}), SearchRequest(body={"q": 2})], "concepts"
        )
        assert [r.total for r in results] == [0, 1]

    @pytest.mark.asyncio
    async def test_multi_search_empty_bundle_skips_backend(self) -> None:
        backend = StubSearchBackend()
        assert await _dispatcher(backend).multi_search([], "concepts") == []
        assert backend.multi_search_calls == []

    @pytest.mark.asyncio
    async def test_multi_search_item_error(self) -> None:
        backend = StubSearchBackend(
            multi_responses=[[{"error": {"type": "query_shard_exception", "reason": "boom"}}]]
        )
        with pytest.raises(SearchBackendError, match="boom"):
            await _dispatcher(backend).multi_search([SearchRequest()], "concepts")

    @pytest.mark.asyncio
    async def test_multi_search_response_count_mismatch(self) -> None:
        backend = StubSearchBackend(multi_responses=[[search_response()]])
        with pytest.raises(SearchBackendError, match="2 queries"):
            await _dispatcher(backend).multi_search([SearchRequest(), SearchRequest()], "concepts")

    @pytest.mark.asyncio
    async def test_cancelling_the_caller_cancels_the_backend_call(self) -> None:
        backend = _BlockingBackend()
        task = asyncio.create_task(_dispatcher(backend).search(SearchRequest(), "concepts"))
        await backend.started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert backend.cancelled
