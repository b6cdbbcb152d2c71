"""Operational endpoints: health, health details, good-to-go and build info."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from concept_search import __version__
from concept_search.api.schemas import BuildInfoResponse, HealthCheckResponse, HealthResponse
from concept_search.config.settings import Settings
from concept_search.services.health_service import HealthService

router = APIRouter(include_in_schema=False)


def _get_health_service(request: Request) -> HealthService:
    return request.app.state.health_service


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


HealthServiceDep = Annotated[HealthService, Depends(_get_health_service)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


@router.get("/__health")
async def health(health_service: HealthServiceDep, settings: SettingsDep) -> JSONResponse:
    """Aggregated health; always 200, the body says whether checks pass."""
    checks = await health_service.checks()
    body = HealthResponse(
        system_code=settings.app_system_code,
        name=settings.app_name,
        description="Search API for concepts held in Elasticsearch",
        checks=[HealthCheckResponse.model_validate(c.to_json()) for c in checks],
        ok=all(c.ok for c in checks),
    )
    return JSONResponse(content=body.model_dump(by_alias=True))


@router.get("/__health-details")
async def health_details(health_service: HealthServiceDep) -> Response:
    details = await health_service.cluster_health()
    if details is None:
        return Response(status_code=503, media_type="application/json")
    return JSONResponse(content=details)


@router.get("/__gtg")
async def good_to_go(health_service: HealthServiceDep) -> PlainTextResponse:
    ok, message = await health_service.good_to_go()
    if not ok:
        return PlainTextResponse(message, status_code=503, headers={"Cache-Control": "no-cache"})
    return PlainTextResponse("OK", headers={"Cache-Control": "no-cache"})


@router.get("/__build-info")
async def build_info(settings: SettingsDep) -> JSONResponse:
    body = BuildInfoResponse(
        version=__version__,
        name=settings.app_name,
        system_code=settings.app_system_code,
    )
    return JSONResponse(content=body.model_dump(by_alias=True))
