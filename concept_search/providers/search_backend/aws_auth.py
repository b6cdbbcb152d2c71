"""AWS SigV4 request signing for a cloud-hosted Elasticsearch domain.

Plugs into httpx as an :class:`httpx.Auth` so the backend provider stays
transport-agnostic: with ``auth=aws`` every outbound request is signed for
service ``es`` in the configured region, using whatever credentials the
default botocore chain resolves (env vars, shared config, instance role).
"""

from __future__ import annotations

from collections.abc import Generator

import httpx
import structlog
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials
from botocore.session import Session

from concept_search.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_SERVICE_NAME = "es"
# Hop-by-hop headers are rewritten by proxies and must stay out of the signature.
_UNSIGNED_HEADERS = frozenset({"connection", "user-agent", "expect"})


class AWSSigV4Auth(httpx.Auth):
    """Sign httpx requests with AWS Signature Version 4."""

    requires_request_body = True

    def __init__(self, credentials: Credentials, region: str) -> None:
        self._credentials = credentials
        self._region = region

    @classmethod
    def from_default_chain(cls, region: str) -> AWSSigV4Auth:
        """Resolve credentials from the botocore default chain.

        Raises
        ------
        ConfigurationError
            If the chain resolves no credentials.
        """
        credentials = Session().get_credentials()
        if credentials is None:
            raise ConfigurationError(
                message="no AWS credentials found for signing Elasticsearch requests",
                provider_name="aws",
            )
        logger.info("aws_signing_enabled", region=region, method=credentials.method)
        return cls(credentials, region)

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        headers = {
            key: value
            for key, value in request.headers.items()
            if key.lower() not in _UNSIGNED_HEADERS
        }
        aws_request = AWSRequest(
            method=request.method,
            url=str(request.url),
            data=request.content,
            headers=headers,
        )
        # Refreshable credentials rotate; sign with the current snapshot.
        frozen = self._credentials.get_frozen_credentials()
        SigV4Auth(frozen, _SERVICE_NAME, self._region).add_auth(aws_request)

        for key, value in aws_request.headers.items():
            request.headers[key] = value
        yield request
