"""API middleware: request logging with transaction ids, and error mapping.

Starlette runs middleware last-added-first, so ``main.create_app`` adds
:class:`ErrorHandlingMiddleware` first and :class:`RequestLoggingMiddleware`
second.  Request flow is then::

    Client -> RequestLogging -> ErrorHandling -> route handler

and the logging middleware sees the final status code, including the ones
produced by error mapping.
"""

from __future__ import annotations

import time

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from concept_search.api.schemas import ErrorResponse
from concept_search.utils.errors import (
    BackendUnavailableError,
    ConceptNotFoundError,
    ConceptSearchError,
    InputError,
    NotAcceptableError,
    RequestValidationError,
    SearchBackendError,
)
from concept_search.utils.logging import (
    TRANSACTION_ID_HEADER,
    bind_transaction_id,
    clear_transaction_id,
    get_logger,
)

_logger: structlog.BoundLogger = get_logger(__name__)

# The one place error kinds turn into HTTP statuses.
ERROR_STATUS: dict[type[ConceptSearchError], int] = {
    RequestValidationError: 400,
    InputError: 400,
    ConceptNotFoundError: 404,
    NotAcceptableError: 406,
    BackendUnavailableError: 503,
    SearchBackendError: 500,
}

# Statuses answered without a body.
_EMPTY_BODY_STATUSES = frozenset({404, 406})


def status_for(exc: ConceptSearchError) -> int:
    for error_type in type(exc).__mro__:
        status = ERROR_STATUS.get(error_type)
        if status is not None:
            return status
    return 500


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration.

    The caller's ``X-Request-Id`` (or a generated one) is bound to every log
    event of the request and echoed in the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        transaction_id = bind_transaction_id(request.headers.get(TRANSACTION_ID_HEADER))
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            response.headers[TRANSACTION_ID_HEADER] = transaction_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                query=str(request.url.query),
                status=status_code,
                duration_ms=duration_ms,
            )
            clear_transaction_id()


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn ``ConceptSearchError`` subclasses into HTTP error responses.

    Client errors carry ``{"message": ...}``; 404 and 406 have no body.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ConceptSearchError as exc:
            status_code = status_for(exc)
            log = _logger.error if status_code >= 500 else _logger.info
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=status_code,
                path=str(request.url.path),
            )
            if status_code in _EMPTY_BODY_STATUSES:
                return Response(status_code=status_code)
            body = ErrorResponse(message=exc.message)
            return JSONResponse(status_code=status_code, content=body.model_dump())
