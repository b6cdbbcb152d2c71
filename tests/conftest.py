"""Shared pytest fixtures for the concept search test suite."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from concept_search.api.health import router as health_router
from concept_search.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from concept_search.api.routes import router as search_router
from concept_search.config.settings import Settings
from concept_search.interfaces.search_backend import ISearchBackend, SearchRequest
from concept_search.main import _build_all

PERSON = "http://www.ft.com/ontology/person/Person"
GENRE = "http://www.ft.com/ontology/Genre"
ORGANISATION = "http://www.ft.com/ontology/organisation/Organisation"
PUBLIC_COMPANY = "http://www.ft.com/ontology/company/PublicCompany"
TOPIC = "http://www.ft.com/ontology/Topic"
THING = "http://www.ft.com/ontology/core/Thing"
CONCEPT = "http://www.ft.com/ontology/concept/Concept"

UUID_1 = "2d3e16e0-61cb-4322-8aff-3b01c59f4daa"
UUID_2 = "c9d0d9f6-0a1c-4bd4-9fd7-b8b2e1cb3b7c"
UUID_3 = "9a5e3b4a-55da-498c-816f-9c534e1392bd"
UUID_4 = "71a5efa5-e6e0-3ce1-9190-a7eac8bef325"


# ---------------------------------------------------------------------------
# Canned backend documents and responses
# ---------------------------------------------------------------------------


def es_source(
    uuid: str,
    pref_label: str,
    types: list[str] | None = None,
    token: str = "people",
    **extra: Any,
) -> dict[str, Any]:
    """A concept document as stored in the index."""
    types = types or [THING, CONCEPT, PERSON]
    source = {
        "id": f"http://www.ft.com/thing/{uuid}",
        "apiUrl": f"http://api.ft.com/people/{uuid}",
        "prefLabel": pref_label,
        "types": types,
        "directType": types[-1],
        "type": token,
    }
    source.update(extra)
    return source


def es_hit(source: Any, score: float | None = 1.0, hit_id: str | None = None) -> dict[str, Any]:
    if hit_id is None:
        hit_id = source["id"].rsplit("/", 1)[-1] if isinstance(source, dict) else "x"
    return {"_index": "concepts", "_id": hit_id, "_score": score, "_source": source}


def search_response(*hits: dict[str, Any], total: int | None = None) -> dict[str, Any]:
    return {
        "took": 3,
        "timed_out": False,
        "hits": {
            "total": {"value": len(hits) if total is None else total, "relation": "eq"},
            "max_score": 1.0,
            "hits": list(hits),
        },
    }


class StubSearchBackend(ISearchBackend):
    """In-memory backend returning queued canned responses and recording calls."""

    def __init__(
        self,
        responses: list[dict[str, Any]] | None = None,
        multi_responses: list[list[dict[str, Any]]] | None = None,
        health: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.responses = list(responses or [])
        self.multi_responses = list(multi_responses or [])
        self.health = health if health is not None else {"cluster_name": "test", "status": "green"}
        self.error = error
        self.search_calls: list[tuple[str, SearchRequest]] = []
        self.multi_search_calls: list[tuple[str, list[SearchRequest]]] = []
        self.closed = False

    async def search(self, index: str, request: SearchRequest) -> dict[str, Any]:
        self.search_calls.append((index, request))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0) if self.responses else search_response()

    async def multi_search(
        self, index: str, requests: list[SearchRequest]
    ) -> list[dict[str, Any]]:
        self.multi_search_calls.append((index, requests))
        if self.error is not None:
            raise self.error
        if self.multi_responses:
            return self.multi_responses.pop(0)
        return [search_response() for _ in requests]

    async def cluster_health(self) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        return self.health

    def get_provider_name(self) -> str:
        return "stub"

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Settings & app fixtures
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    """Settings with test defaults, independent of the environment."""
    defaults: dict[str, Any] = {
        "elasticsearch_endpoint": "http://es.test:9200",
        "elasticsearch_default_index": "concepts",
        "elasticsearch_extended_index": "all-concepts",
        "search_result_limit": 50,
        "autocomplete_result_limit": 10,
        "max_ids_limit": 5,
        "auth": "none",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def create_test_app(
    backend: ISearchBackend | None = None, **settings_overrides: Any
) -> FastAPI:
    """A FastAPI app wired like production, with *backend* pre-installed."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(search_router)
    app.include_router(health_router)

    for key, value in _build_all(make_settings(**settings_overrides)).items():
        setattr(app.state, key, value)
    if backend is not None:
        app.state.backend_holder.install(backend)
    return app


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def stub_backend() -> StubSearchBackend:
    return StubSearchBackend()


@pytest.fixture
def client(stub_backend: StubSearchBackend) -> TestClient:
    return TestClient(create_test_app(stub_backend))
