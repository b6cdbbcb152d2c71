"""Concept Search API FastAPI application entry point.

Wires settings, the search backend, services and routes together.  The
backend is installed in the background: the server answers requests (with
503 for anything needing the backend) until the first successful
connection to the cluster.
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from concept_search import __version__
from concept_search.api.health import router as health_router
from concept_search.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from concept_search.api.routes import router as search_router
from concept_search.config.settings import Settings
from concept_search.interfaces.search_backend import ISearchBackend
from concept_search.providers.search_backend.aws_auth import AWSSigV4Auth
from concept_search.providers.search_backend.elasticsearch_provider import (
    ElasticsearchHTTPBackend,
)
from concept_search.services.backend_holder import (
    BackendFactory,
    BackendHolder,
    keep_installing_backend,
)
from concept_search.services.concept_search_service import ConceptSearchService
from concept_search.services.dispatcher import SearchDispatcher
from concept_search.services.health_service import HealthService
from concept_search.services.query_builder import QueryBuilder
from concept_search.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component assembly
# ---------------------------------------------------------------------------


def _build_backend_factory(app_settings: Settings) -> BackendFactory:
    """Return a callable creating a fresh backend for each connection attempt."""

    def factory() -> ISearchBackend:
        auth = (
            AWSSigV4Auth.from_default_chain(app_settings.elasticsearch_region)
            if app_settings.uses_aws_auth
            else None
        )
        return ElasticsearchHTTPBackend(settings=app_settings, auth=auth)

    return factory


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Instantiate every service; the backend itself arrives later."""
    holder = BackendHolder()
    dispatcher = SearchDispatcher(
        holder,
        default_index=app_settings.elasticsearch_default_index,
        extended_index=app_settings.elasticsearch_extended_index,
    )
    builder = QueryBuilder(
        search_result_limit=app_settings.search_result_limit,
        autocomplete_result_limit=app_settings.autocomplete_result_limit,
    )
    return {
        "settings": app_settings,
        "backend_holder": holder,
        "search_service": ConceptSearchService(builder, dispatcher),
        "health_service": HealthService(holder),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build services, start installing the backend, clean up on shutdown."""
    app_settings: Settings = application.state.settings
    components = _build_all(app_settings)
    for key, value in components.items():
        setattr(application.state, key, value)

    holder: BackendHolder = components["backend_holder"]
    installer = asyncio.create_task(
        keep_installing_backend(
            holder,
            application.state.backend_factory,
            app_settings.backend_setup_retry_seconds,
        )
    )

    _logger.info(
        "app_startup",
        version=__version__,
        environment=app_settings.app_env,
        endpoint=app_settings.elasticsearch_endpoint,
        auth=app_settings.auth,
        default_index=app_settings.elasticsearch_default_index,
        extended_index=app_settings.elasticsearch_extended_index,
    )

    yield

    installer.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await installer

    backend = holder.clear()
    if backend is not None:
        await backend.close()
    _logger.info("app_shutdown", message="search backend closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    backend_factory: BackendFactory | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    application = FastAPI(
        title=app_settings.app_name,
        version=__version__,
        description=(
            "Search, list and look up editorial concepts (people, organisations, "
            "topics, locations...) held in an Elasticsearch index."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings
    application.state.backend_factory = backend_factory or _build_backend_factory(app_settings)

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)

    application.include_router(search_router)
    application.include_router(health_router)

    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "concept_search.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
