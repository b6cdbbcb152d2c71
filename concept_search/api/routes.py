"""FastAPI routes for concept search.

Service dependencies are resolved from ``app.state`` via ``Depends`` using
the ``Annotated`` pattern; ``main._lifespan`` puts them there.

Endpoint            Method  Description
--------------------------------------------------------------------------
/concepts           GET     By-type listing, by-id lookup, or typeahead
                            (``mode=search``) / organisation (``mode=text``)
                            search.  Zero hits is a 200 with an empty list.
/concept/search     POST    Term search (``{"term": ...}``) or best-match
                            batch (``{"bestMatchTerms": [...]}``).  Zero hits
                            is a 404.

Errors are raised as ``ConceptSearchError`` subclasses and turned into
responses by ``ErrorHandlingMiddleware``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from concept_search.api.schemas import ConceptsResponse, SearchResultsResponse
from concept_search.api.validation import (
    accepts_json,
    parse_catalog_query,
    parse_search_criteria,
    parse_search_flags,
)
from concept_search.config.settings import Settings
from concept_search.models.concept import Concept
from concept_search.services.concept_search_service import ConceptSearchService
from concept_search.utils.errors import NotAcceptableError

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_search_service(request: Request) -> ConceptSearchService:
    return request.app.state.search_service


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_json_accept(request: Request) -> None:
    """Reject clients that will not accept JSON, before the handler runs."""
    if not accepts_json(request.headers.get("accept")):
        raise NotAcceptableError()


SearchServiceDep = Annotated[ConceptSearchService, Depends(_get_search_service)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


# ---------------------------------------------------------------------------
# GET /concepts
# ---------------------------------------------------------------------------


@router.get(
    "/concepts",
    dependencies=[Depends(require_json_accept)],
    summary="List, look up or search concepts",
)
async def get_concepts(
    request: Request,
    service: SearchServiceDep,
    settings: SettingsDep,
) -> JSONResponse:
    query = parse_catalog_query(request.query_params, settings.max_ids_limit)

    concepts: list[Concept]
    if query.kind == "ids":
        concepts = await service.find_by_ids(query.ids)
    elif query.kind == "by_type":
        concepts = await service.find_by_type(
            query.types[0],
            include_deprecated=query.include_deprecated,
            search_all_authorities=query.search_all_authorities,
        )
    elif query.kind == "search":
        concepts = await service.search_by_text_and_types(
            query.q or "",
            query.types,
            boost=query.boost,
            include_deprecated=query.include_deprecated,
            search_all_authorities=query.search_all_authorities,
        )
    else:
        concepts = await service.search_organisations(
            query.q or "",
            query.types,
            include_deprecated=query.include_deprecated,
            search_all_authorities=query.search_all_authorities,
        )

    return JSONResponse(content=ConceptsResponse(concepts=concepts).to_json())


# ---------------------------------------------------------------------------
# POST /concept/search
# ---------------------------------------------------------------------------


@router.post("/concept/search", summary="Term search or best-match batch")
async def search_concepts(request: Request, service: SearchServiceDep) -> JSONResponse:
    flags = parse_search_flags(request.query_params)
    criteria = parse_search_criteria(await request.body())

    if criteria.term is not None:
        concepts = await service.search_term(
            criteria.term,
            flags,
            types=criteria.concept_types,
            boost=criteria.boost,
            filter_type=criteria.filter,
        )
        return JSONResponse(content=SearchResultsResponse(results=concepts).to_json())

    matches = await service.best_match(
        criteria.best_match_terms or [],
        flags,
        types=criteria.concept_types,
        boost=criteria.boost,
        filter_type=criteria.filter,
    )
    return JSONResponse(
        content={term: [c.to_json() for c in concepts] for term, concepts in matches.items()}
    )
