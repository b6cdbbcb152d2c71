"""Process-wide search backend handle and the startup loop that installs it.

The server starts accepting requests before the search cluster is reachable.
Until :func:`keep_installing_backend` succeeds, :meth:`BackendHolder.get`
returns ``None`` and every backend-dependent request fails with
service-unavailable.  Installation swaps the reference under a lock, so a
request sees either no backend or a fully constructed one.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable

import structlog

from concept_search.interfaces.search_backend import ISearchBackend
from concept_search.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

BackendFactory = Callable[[], ISearchBackend]


class BackendHolder:
    """Single-writer, many-reader holder for the installed search backend."""

    def __init__(self, backend: ISearchBackend | None = None) -> None:
        self._lock = threading.Lock()
        self._backend = backend

    def get(self) -> ISearchBackend | None:
        with self._lock:
            return self._backend

    def install(self, backend: ISearchBackend) -> ISearchBackend | None:
        """Install *backend* and return the one it replaced (if any)."""
        with self._lock:
            previous, self._backend = self._backend, backend
        return previous

    def clear(self) -> ISearchBackend | None:
        with self._lock:
            previous, self._backend = self._backend, None
        return previous

    @property
    def is_installed(self) -> bool:
        return self.get() is not None


async def install_backend(holder: BackendHolder, factory: BackendFactory) -> ISearchBackend:
    """Create a backend, prove it can reach the cluster, then install it.

    A backend that fails the health call is closed and the error re-raised.
    """
    backend = factory()
    try:
        health = await backend.cluster_health()
    except BaseException:
        await backend.close()
        raise

    previous = holder.install(backend)
    if previous is not None and previous is not backend:
        await previous.close()
    _logger.info(
        "backend_installed",
        provider=backend.get_provider_name(),
        cluster=health.get("cluster_name"),
        status=health.get("status"),
    )
    return backend


async def keep_installing_backend(
    holder: BackendHolder,
    factory: BackendFactory,
    retry_seconds: float,
) -> ISearchBackend:
    """Retry :func:`install_backend` every *retry_seconds* until it succeeds."""
    attempt = 0
    while True:
        attempt += 1
        try:
            return await install_backend(holder, factory)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.error(
                "backend_setup_failed",
                attempt=attempt,
                error=str(exc),
                retry_in_seconds=retry_seconds,
            )
        await asyncio.sleep(retry_seconds)
