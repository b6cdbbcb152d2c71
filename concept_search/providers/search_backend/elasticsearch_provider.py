"""Elasticsearch search backend adapter over the REST API.

Talks to the cluster with a shared ``httpx.AsyncClient``: ``_search`` for
single queries, ``_msearch`` (NDJSON) for bundles, ``_cluster/health`` for
health.  The transport retries failed connections a bounded number of times
and every call carries the configured timeout.  Cancelling the awaiting task
cancels the in-flight HTTP call.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from concept_search.config.settings import Settings
from concept_search.interfaces.search_backend import ISearchBackend, SearchRequest
from concept_search.utils.errors import BackendUnavailableError, SearchBackendError

logger = structlog.get_logger(logger_name=__name__)

_NDJSON = "application/x-ndjson"


class ElasticsearchHTTPBackend(ISearchBackend):
    """Search backend talking to an Elasticsearch (or OpenSearch) cluster.

    Parameters
    ----------
    settings:
        Supplies endpoint, timeout, retry count and the trace flag.
    auth:
        Optional httpx auth (AWS SigV4 signing when ``auth=aws``).
    transport:
        Optional httpx transport; tests inject ``httpx.MockTransport``.
    """

    def __init__(
        self,
        settings: Settings,
        auth: httpx.Auth | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = settings.elasticsearch_endpoint.rstrip("/")
        self._trace = settings.elasticsearch_trace
        if transport is None:
            transport = httpx.AsyncHTTPTransport(retries=settings.backend_max_retries)
        self._client = httpx.AsyncClient(
            base_url=self._endpoint,
            timeout=settings.backend_timeout_seconds,
            transport=transport,
            auth=auth,
            headers={"Accept": "application/json"},
        )

    # ------------------------------------------------------------------
    # ISearchBackend implementation
    # ------------------------------------------------------------------

    async def search(self, index: str, request: SearchRequest) -> dict[str, Any]:
        params = {"search_type": request.search_type} if request.search_type else None
        response = await self._send(
            "POST",
            f"/{index}/_search",
            params=params,
            content=json.dumps(request.body),
            headers={"Content-Type": "application/json"},
        )
        return self._decode(response)

    async def multi_search(
        self, index: str, requests: list[SearchRequest]
    ) -> list[dict[str, Any]]:
        lines: list[str] = []
        for request in requests:
            header: dict[str, Any] = {"index": index}
            if request.search_type:
                header["search_type"] = request.search_type
            lines.append(json.dumps(header))
            lines.append(json.dumps(request.body))
        # The bulk-style body must end with a newline.
        payload = "\n".join(lines) + "\n"

        response = await self._send(
            "POST",
            "/_msearch",
            content=payload,
            headers={"Content-Type": _NDJSON},
        )
        decoded = self._decode(response)
        responses = decoded.get("responses")
        if not isinstance(responses, list) or len(responses) != len(requests):
            raise SearchBackendError(
                message="multi-search response does not match the number of queries",
                provider_name=self.get_provider_name(),
            )
        return responses

    async def cluster_health(self) -> dict[str, Any]:
        response = await self._send("GET", "/_cluster/health")
        return self._decode(response)

    def get_provider_name(self) -> str:
        return "elasticsearch"

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if self._trace:
            logger.debug(
                "elasticsearch_request",
                method=method,
                path=path,
                params=kwargs.get("params"),
                body=kwargs.get("content"),
            )
        try:
            response = await self._client.request(method, path, **kwargs)
        except (httpx.ConnectError, httpx.ConnectTimeout) as exc:
            raise BackendUnavailableError(
                message=f"no Elasticsearch node available: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise SearchBackendError(
                message=f"Elasticsearch request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if self._trace:
            logger.debug(
                "elasticsearch_response",
                method=method,
                path=path,
                status=response.status_code,
                body=response.text,
            )

        if response.is_error:
            raise SearchBackendError(
                message=(
                    f"elastic: Error {response.status_code} "
                    f"({response.reason_phrase}): {_error_reason(response)}"
                ),
                provider_name=self.get_provider_name(),
            )
        return response

    def _decode(self, response: httpx.Response) -> dict[str, Any]:
        try:
            decoded = response.json()
        except ValueError as exc:
            raise SearchBackendError(
                message="invalid JSON in Elasticsearch response",
                provider_name=self.get_provider_name(),
            ) from exc
        if not isinstance(decoded, dict):
            raise SearchBackendError(
                message="unexpected Elasticsearch response shape",
                provider_name=self.get_provider_name(),
            )
        return decoded


def _error_reason(response: httpx.Response) -> str:
    """Pull ``error.reason`` out of an Elasticsearch error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("reason") or error.get("type") or error)
    if error:
        return str(error)
    return response.text
