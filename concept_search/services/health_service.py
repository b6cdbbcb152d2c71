"""Health checks against the search backend.

Two checks feed ``/__health``: connectivity (a backend is installed and
answers the cluster-health call) and cluster health (the cluster reports
``green``).  ``/__gtg`` is the cluster-health check alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from concept_search.services.backend_holder import BackendHolder
from concept_search.utils.errors import ConceptSearchError
from concept_search.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

PANIC_GUIDE_URL = "https://dewey.ft.com/up-csa.html"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one health check, in the shape ``/__health`` reports."""

    id: str
    name: str
    ok: bool
    business_impact: str
    technical_summary: str
    check_output: str
    severity: int = 1
    panic_guide: str = PANIC_GUIDE_URL
    last_updated: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ok": self.ok,
            "severity": self.severity,
            "businessImpact": self.business_impact,
            "technicalSummary": self.technical_summary,
            "panicGuide": self.panic_guide,
            "checkOutput": self.check_output,
            "lastUpdated": self.last_updated,
        }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthService:
    """Run the backend health checks on demand."""

    def __init__(self, holder: BackendHolder) -> None:
        self._holder = holder

    async def cluster_health(self) -> dict[str, Any] | None:
        """Return the cluster health document, or ``None`` if unavailable."""
        backend = self._holder.get()
        if backend is None:
            return None
        try:
            return await backend.cluster_health()
        except ConceptSearchError as exc:
            _logger.warning("cluster_health_failed", error=str(exc))
            return None

    async def connectivity_check(self) -> CheckResult:
        ok = False
        if self._holder.get() is None:
            output = (
                "Could not connect to elasticsearch, please check the application "
                "parameters/env variables, and restart the service"
            )
        elif await self.cluster_health() is None:
            output = "Could not connect to elasticsearch"
        else:
            ok = True
            output = "Successfully connected to the cluster"
        return CheckResult(
            id="elasticsearch-connectivity",
            name="Check connectivity to the Elasticsearch cluster",
            ok=ok,
            business_impact="Could not connect to Elasticsearch",
            technical_summary=(
                "Connection to Elasticsearch cluster could not be created. "
                "Please check your AWS credentials."
            ),
            check_output=output,
            last_updated=_now(),
        )

    async def cluster_check(self) -> CheckResult:
        ok, output = await self._cluster_status()
        return CheckResult(
            id="elasticsearch-cluster-health",
            name="Check Elasticsearch cluster health",
            ok=ok,
            business_impact="Full or partial degradation in serving requests from Elasticsearch",
            technical_summary="Elasticsearch cluster is not healthy. Details on /__health-details",
            check_output=output,
            last_updated=_now(),
        )

    async def _cluster_status(self) -> tuple[bool, str]:
        if self._holder.get() is None:
            return False, "Couldn't establish connectivity"
        health = await self.cluster_health()
        if health is None:
            return False, "Cluster is not healthy"
        status = health.get("status")
        if status != "green":
            return False, f"Cluster is {status}"
        return True, "Cluster is healthy"

    async def checks(self) -> list[CheckResult]:
        return [await self.connectivity_check(), await self.cluster_check()]

    async def good_to_go(self) -> tuple[bool, str]:
        """Readiness: ``(True, "")`` when the cluster is green, else the reason."""
        ok, output = await self._cluster_status()
        return ok, "" if ok else output
