"""Request validation for the two data endpoints.

Query-string rules are checked in a fixed order and the first failure wins:

    1. single-valued parameters appear at most once
    2. enumerated parameters (``mode``, ``boost``) carry an allowed value
    3. ``ids`` excludes every other parameter and respects the ids limit
    4. per-mode requirements (``q`` / ``type`` / ``boost`` combinations)

The POST body must hold exactly one of ``term`` / ``bestMatchTerms``.
Domain checks (is the type URI known, is an authors boost applied to a
single Person type) happen in the search service.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from pydantic import ValidationError
from starlette.datastructures import QueryParams

from concept_search.models.search import SearchCriteria, SearchFlags
from concept_search.utils.errors import InputError, RequestValidationError

MODES = ("search", "text")
BOOSTS = ("authors",)

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_MISSING_PARAMS = "invalid or missing parameters for concept search"

CATALOG_SINGLE_PARAMS = ("mode", "q", "boost", "include_deprecated", "searchAllAuthorities")
SEARCH_SINGLE_PARAMS = ("include_score", "include_deprecated", "searchAllAuthorities")

CatalogKind = Literal["ids", "by_type", "search", "text"]


@dataclass(frozen=True)
class CatalogQuery:
    """A validated ``GET /concepts`` request."""

    kind: CatalogKind
    ids: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    q: str | None = None
    boost: str | None = None
    include_deprecated: bool = False
    search_all_authorities: bool = False


# ---------------------------------------------------------------------------
# Query-string helpers
# ---------------------------------------------------------------------------


def reject_repeated(params: QueryParams, names: Iterable[str]) -> None:
    for name in names:
        if len(params.getlist(name)) > 1:
            raise RequestValidationError(f"specified multiple {name} query parameters in the URL")


def get_single_value(
    params: QueryParams, name: str, allowed: Iterable[str] = ()
) -> str | None:
    """Return the only value of *name*, or ``None`` when absent."""
    values = params.getlist(name)
    if len(values) > 1:
        raise RequestValidationError(f"specified multiple {name} query parameters in the URL")
    if not values:
        return None
    value = values[0]
    allowed = tuple(allowed)
    if allowed and value not in allowed:
        raise RequestValidationError(f"'{value}' is not a valid value for parameter '{name}'")
    return value


def get_bool(params: QueryParams, name: str, default: bool = False) -> bool:
    value = get_single_value(params, name)
    if value is None:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise RequestValidationError(f"'{value}' is not a valid value for parameter '{name}'")


def get_multiple(params: QueryParams, name: str) -> list[str]:
    return params.getlist(name)


# ---------------------------------------------------------------------------
# GET /concepts
# ---------------------------------------------------------------------------


def parse_catalog_query(params: QueryParams, max_ids_limit: int) -> CatalogQuery:
    """Validate the catalog endpoint's query string.

    Raises
    ------
    RequestValidationError
        For repeated, unknown-valued or conflicting parameters.
    InputError
        When more than *max_ids_limit* ids are requested.
    """
    reject_repeated(params, CATALOG_SINGLE_PARAMS)
    mode = get_single_value(params, "mode", MODES)
    boost = get_single_value(params, "boost", BOOSTS)

    if "ids" in params:
        return _parse_ids(params, max_ids_limit)

    q = get_single_value(params, "q")
    types = tuple(get_multiple(params, "type"))
    include_deprecated = get_bool(params, "include_deprecated")
    search_all = get_bool(params, "searchAllAuthorities")

    if mode is None:
        if q is not None:
            raise RequestValidationError(f"{_MISSING_PARAMS} (q but no mode)")
        if boost is not None:
            raise RequestValidationError(f"{_MISSING_PARAMS} (boost but no mode)")
        if not types:
            raise RequestValidationError(_MISSING_PARAMS)
        if len(types) > 1:
            raise RequestValidationError("only a single type is supported by this kind of request")
        return CatalogQuery(
            kind="by_type",
            types=types,
            include_deprecated=include_deprecated,
            search_all_authorities=search_all,
        )

    if not types:
        raise RequestValidationError(f"{_MISSING_PARAMS} (require type)")
    if not q:
        raise RequestValidationError(f"{_MISSING_PARAMS} (require q)")
    if mode == "text" and boost is not None:
        raise RequestValidationError(f"{_MISSING_PARAMS} (boost is only supported in search mode)")

    return CatalogQuery(
        kind="search" if mode == "search" else "text",
        types=types,
        q=q,
        boost=boost,
        include_deprecated=include_deprecated,
        search_all_authorities=search_all,
    )


def _parse_ids(params: QueryParams, max_ids_limit: int) -> CatalogQuery:
    if any(key != "ids" for key in params.keys()):
        raise RequestValidationError(
            "invalid parameters, 'ids' cannot be combined with any other parameter"
        )
    ids = get_multiple(params, "ids")
    if len(ids) > max_ids_limit:
        raise InputError(
            f"number of 'ids' parameters exceeds the limit, supplied: {len(ids)}; "
            f"the max number of 'ids' is {max_ids_limit}"
        )
    if any(not i.strip() for i in ids):
        raise RequestValidationError("empty value for parameter 'ids'")
    return CatalogQuery(kind="ids", ids=tuple(ids))


# ---------------------------------------------------------------------------
# POST /concept/search
# ---------------------------------------------------------------------------


def parse_search_flags(params: QueryParams) -> SearchFlags:
    reject_repeated(params, SEARCH_SINGLE_PARAMS)
    return SearchFlags(
        include_score=get_bool(params, "include_score"),
        include_deprecated=get_bool(params, "include_deprecated"),
        search_all_authorities=get_bool(params, "searchAllAuthorities"),
        include_authors="authors" in get_multiple(params, "include_field"),
    )


def parse_search_criteria(body: bytes) -> SearchCriteria:
    """Decode and check the search body.

    Raises
    ------
    RequestValidationError
        For an empty or malformed body, or a body without exactly one of
        ``term`` / ``bestMatchTerms``.
    """
    if not body.strip():
        raise RequestValidationError("empty request body")
    try:
        criteria = SearchCriteria.model_validate_json(body)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "body"
        raise RequestValidationError(
            f"invalid search request body ({location}): {first.get('msg', 'invalid value')}"
        ) from exc

    has_term = criteria.term is not None
    has_batch = bool(criteria.best_match_terms)
    if has_term and has_batch:
        raise RequestValidationError("only one of 'term' or 'bestMatchTerms' may be provided")
    if not has_term and not has_batch:
        raise RequestValidationError(
            "the request body must contain either 'term' or 'bestMatchTerms'"
        )
    if has_term and not criteria.term.strip():
        raise RequestValidationError("empty value for 'term'")
    if has_batch and any(not t.strip() for t in criteria.best_match_terms):
        raise RequestValidationError("empty value in 'bestMatchTerms'")
    return criteria


def accepts_json(accept: str | None) -> bool:
    """True for a missing Accept header or one admitting JSON."""
    return not accept or "application/json" in accept or "*/*" in accept
