"""Concept search API layer: routes, health routes, validation and middleware."""

from concept_search.api.health import router as health_router
from concept_search.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from concept_search.api.routes import router as search_router

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "health_router",
    "search_router",
]
