"""Unit tests for settings loading and the factory functions in concept_search/main.py.

Covers the legacy environment variable names, backend factory selection
(plain vs SigV4-signed), component assembly, the app factory and the
lifespan that installs and closes the search backend.
"""

from __future__ import annotations

import time
from unittest.mock import patch

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError

from concept_search.config.settings import Settings
from concept_search.main import _build_all, _build_backend_factory, create_app
from concept_search.providers.search_backend.elasticsearch_provider import (
    ElasticsearchHTTPBackend,
)
from concept_search.services.backend_holder import BackendHolder
from concept_search.services.concept_search_service import ConceptSearchService
from concept_search.services.health_service import HealthService
from tests.conftest import StubSearchBackend, make_settings

_ENV_NAMES = (
    "SEARCH_RESULT_LIMIT",
    "RESULT_LIMIT",
    "AUTOCOMPLETE_RESULT_LIMIT",
    "AUTOCOMPLETE_LIMIT",
    "APP_PORT",
    "PORT",
    "ELASTICSEARCH_EXTENDED_INDEX",
    "ELASTICSEARCH_EXTENDED_SEARCH_INDEX",
    "AUTH",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ======================================================================
# Settings
# ======================================================================


class TestSettings:
    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = Settings(_env_file=None)
        assert settings.search_result_limit == 50
        assert settings.autocomplete_result_limit == 10
        assert settings.app_port == 8080
        assert settings.elasticsearch_extended_index == "all-concepts"
        assert not settings.uses_aws_auth

    def test_current_names(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SEARCH_RESULT_LIMIT", "25")
        clean_env.setenv("APP_PORT", "9000")
        settings = Settings(_env_file=None)
        assert settings.search_result_limit == 25
        assert settings.app_port == 9000

    def test_legacy_names(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("RESULT_LIMIT", "20")
        clean_env.setenv("AUTOCOMPLETE_LIMIT", "5")
        clean_env.setenv("PORT", "8081")
        clean_env.setenv("ELASTICSEARCH_EXTENDED_SEARCH_INDEX", "everything")
        settings = Settings(_env_file=None)
        assert settings.search_result_limit == 20
        assert settings.autocomplete_result_limit == 5
        assert settings.app_port == 8081
        assert settings.elasticsearch_extended_index == "everything"

    def test_aws_auth(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("AUTH", "aws")
        assert Settings(_env_file=None).uses_aws_auth

    def test_unknown_auth_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_settings(auth="basic")

    def test_limits_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            make_settings(search_result_limit=0)


# ======================================================================
# _build_backend_factory
# ======================================================================


class TestBuildBackendFactory:
    def test_plain_backend(self) -> None:
        with patch("concept_search.main.AWSSigV4Auth.from_default_chain") as signer:
            backend = _build_backend_factory(make_settings())()

        assert isinstance(backend, ElasticsearchHTTPBackend)
        signer.assert_not_called()

    def test_aws_signed_backend(self) -> None:
        with patch(
            "concept_search.main.AWSSigV4Auth.from_default_chain",
            return_value=httpx.BasicAuth("u", "p"),
        ) as signer:
            backend = _build_backend_factory(
                make_settings(auth="aws", elasticsearch_region="eu-west-1")
            )()

        assert isinstance(backend, ElasticsearchHTTPBackend)
        signer.assert_called_once_with("eu-west-1")

    def test_each_call_builds_a_new_backend(self) -> None:
        factory = _build_backend_factory(make_settings())
        assert factory() is not factory()


# ======================================================================
# _build_all
# ======================================================================


class TestBuildAll:
    def test_returns_expected_components(self) -> None:
        settings = make_settings()
        components = _build_all(settings)

        assert set(components) == {"settings", "backend_holder", "search_service", "health_service"}
        assert components["settings"] is settings
        assert isinstance(components["backend_holder"], BackendHolder)
        assert isinstance(components["search_service"], ConceptSearchService)
        assert isinstance(components["health_service"], HealthService)

    def test_backend_not_installed_yet(self) -> None:
        assert not _build_all(make_settings())["backend_holder"].is_installed


# ======================================================================
# create_app
# ======================================================================


class TestCreateApp:
    def test_returns_fastapi_instance(self) -> None:
        app = create_app(make_settings(), backend_factory=StubSearchBackend)
        assert isinstance(app, FastAPI)

    def test_title_from_settings(self) -> None:
        app = create_app(make_settings(app_name="Concepts"), backend_factory=StubSearchBackend)
        assert app.title == "Concepts"

    @pytest.mark.parametrize(
        ("endpoint", "path"),
        [
            ("get_concepts", "/concepts"),
            ("search_concepts", "/concept/search"),
            ("health", "/__health"),
            ("health_details", "/__health-details"),
            ("good_to_go", "/__gtg"),
            ("build_info", "/__build-info"),
        ],
    )
    def test_routes(self, endpoint: str, path: str) -> None:
        app = create_app(make_settings(), backend_factory=StubSearchBackend)
        assert app.url_path_for(endpoint) == path


class TestLifespan:
    def test_installs_backend_and_closes_on_shutdown(self) -> None:
        backend = StubSearchBackend()
        app = create_app(make_settings(), backend_factory=lambda: backend)

        with TestClient(app) as client:
            status = 503
            for _ in range(100):
                status = client.get("/__gtg").status_code
                if status == 200:
                    break
                time.sleep(0.01)
            assert status == 200
            assert app.state.backend_holder.get() is backend

        assert backend.closed
        assert app.state.backend_holder.get() is None

    def test_serves_503_until_backend_reachable(self) -> None:
        backend = StubSearchBackend(error=RuntimeError("cluster down"))
        app = create_app(
            make_settings(backend_setup_retry_seconds=3600),
            backend_factory=lambda: backend,
        )

        with TestClient(app) as client:
            response = client.get("/concepts", params={"type": "http://www.ft.com/ontology/Genre"})
            assert response.status_code == 503
            assert response.json() == {"message": "no ElasticSearch client available"}
