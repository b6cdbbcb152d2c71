"""Query builder: turns validated search intents into Elasticsearch query DSL.

Every query shares one filter layer (see :class:`QueryScope`):

    type filter        terms on ``type``, OR ``directType == PublicCompany``
    deprecation        must_not ``isDeprecated == true`` unless deprecated
                       concepts were asked for
    authors filter     ``isFTAuthor == "true"`` when filter=authors

Authority scope is not a clause at all: the dispatcher picks the default or
the extended index alias.

The relevance recipes (term, text mode, best match) are the interesting
part; boost values are module constants so they can be tuned in one place.
Everything returned is a plain :class:`SearchRequest` ready for the backend.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from concept_search.interfaces.search_backend import DFS_QUERY_THEN_FETCH, SearchRequest
from concept_search.services.concept_types import PUBLIC_COMPANY_URI, ResolvedTypes

# Term query: text boosts.
PREF_LABEL_MATCH_BOOST = 0.1
PREF_LABEL_EXACT_MATCH_BOOST = 0.75
ALIASES_EXACT_MATCH_BOOST = 0.5
# Term query: type-centric boosts.
TYPE_BOOSTS: dict[str, float] = {"topics": 1.5, "locations": 0.25, "people": 0.1}
SCOPE_NOTE_EXISTS_BOOST = 0.1
PHRASE_MATCH_BOOST = 0.85
PHRASE_MATCH_TOPICS_WEIGHT = 1.5

# Text mode boosts.
TEXT_MODE_EDGE_NGRAM_BOOST = 4.0
TEXT_MODE_PUBLIC_COMPANY_BOOST = 2.5
TEXT_MODE_ORGANISATION_BOOST = 2.0
TEXT_MODE_MIN_SCORE = 1

AUTHORS_BOOST = 1.8

ANNOTATIONS_COUNT_FIELD = "metrics.annotationsCount"
PREV_WEEK_ANNOTATIONS_COUNT_FIELD = "metrics.prevWeekAnnotationsCount"


@dataclass(frozen=True)
class QueryScope:
    """The filter and boost layers applied on top of a text match."""

    types: ResolvedTypes = field(default_factory=ResolvedTypes)
    include_deprecated: bool = False
    boost_authors: bool = False
    filter_authors: bool = False


# ---------------------------------------------------------------------------
# Clause helpers
# ---------------------------------------------------------------------------


def _bool(
    *,
    must: list[dict[str, Any]] | None = None,
    should: list[dict[str, Any]] | None = None,
    filter: list[dict[str, Any]] | None = None,
    must_not: list[dict[str, Any]] | None = None,
    minimum_should_match: int | None = None,
) -> dict[str, Any]:
    clauses: dict[str, Any] = {}
    for key, value in (
        ("must", must),
        ("should", should),
        ("filter", filter),
        ("must_not", must_not),
    ):
        if value:
            clauses[key] = value
    if minimum_should_match is not None:
        clauses["minimum_should_match"] = minimum_should_match
    return {"bool": clauses}


def _match(field_name: str, text: str, boost: float | None = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"query": text, **extra}
    if boost is not None:
        body["boost"] = boost
    return {"match": {field_name: body}}


def _term(field_name: str, value: Any, boost: float | None = None) -> dict[str, Any]:
    if boost is None:
        return {"term": {field_name: value}}
    return {"term": {field_name: {"value": value, "boost": boost}}}


def _prefix(field_name: str, text: str) -> dict[str, Any]:
    return {"prefix": {field_name: {"value": text, "case_insensitive": True}}}


def _popularity(field_name: str, modifier: str) -> dict[str, Any]:
    return {"field_value_factor": {"field": field_name, "modifier": modifier, "missing": 0}}


def type_filter(types: ResolvedTypes) -> dict[str, Any] | None:
    """Disjunction of the discriminator tokens and the PublicCompany direct type."""
    clauses: list[dict[str, Any]] = []
    if types.tokens:
        clauses.append({"terms": {"type": list(types.tokens)}})
    if types.public_company:
        clauses.append(_term("directType", PUBLIC_COMPANY_URI))
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return _bool(should=clauses, minimum_should_match=1)


def deprecation_filter() -> dict[str, Any]:
    return _term("isDeprecated", True)


def authors_clause(boost: float | None = None) -> dict[str, Any]:
    return _term("isFTAuthor", "true", boost)


def _scoped(
    scope: QueryScope,
    *,
    must: list[dict[str, Any]] | None = None,
    should: list[dict[str, Any]] | None = None,
    minimum_should_match: int | None = None,
) -> dict[str, Any]:
    """Wrap text clauses in a bool query carrying the common filter layer."""
    should = list(should or [])
    filters: list[dict[str, Any]] = []
    must_not: list[dict[str, Any]] = []

    types = type_filter(scope.types)
    if types is not None:
        filters.append(types)
    if scope.filter_authors:
        filters.append(authors_clause())
    if scope.boost_authors:
        should.append(authors_clause(AUTHORS_BOOST))
    if not scope.include_deprecated:
        must_not.append(deprecation_filter())

    return _bool(
        must=must,
        should=should,
        filter=filters,
        must_not=must_not,
        minimum_should_match=minimum_should_match,
    )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class QueryBuilder:
    """Build backend queries for every search the API supports.

    Parameters
    ----------
    search_result_limit:
        Page size for by-type listings.
    autocomplete_result_limit:
        Page size for term and text-mode searches.
    """

    def __init__(self, search_result_limit: int, autocomplete_result_limit: int) -> None:
        self._search_result_limit = search_result_limit
        self._autocomplete_result_limit = autocomplete_result_limit

    def term_query(self, text: str, scope: QueryScope) -> SearchRequest:
        """Typeahead-style search ranking whole-label matches and popular concepts first."""
        loose_match = _bool(
            should=[
                _match("prefLabel.edge_ngram", text),
                _match("aliases.edge_ngram", text),
            ],
            minimum_should_match=1,
        )

        should: list[dict[str, Any]] = [
            _match("prefLabel", text, PREF_LABEL_MATCH_BOOST),
            _match("prefLabel.exact_match", text, PREF_LABEL_EXACT_MATCH_BOOST),
            _match("aliases.exact_match", text, ALIASES_EXACT_MATCH_BOOST),
        ]
        should.extend(_term("type", token, boost) for token, boost in TYPE_BOOSTS.items())
        should.append({"exists": {"field": "scopeNote", "boost": SCOPE_NOTE_EXISTS_BOOST}})
        should.append(self._phrase_popularity(text))
        should.append({"function_score": _popularity(ANNOTATIONS_COUNT_FIELD, "ln1p")})
        should.append(
            {"function_score": _popularity(PREV_WEEK_ANNOTATIONS_COUNT_FIELD, "ln1p")}
        )

        body = {
            "size": self._autocomplete_result_limit,
            "query": _scoped(scope, must=[loose_match], should=should),
        }
        return SearchRequest(body=body, search_type=DFS_QUERY_THEN_FETCH)

    @staticmethod
    def _phrase_popularity(text: str) -> dict[str, Any]:
        # In-order matches score by popularity alone: the functions multiply
        # together and replace the phrase score.
        phrase = _bool(
            should=[
                {"match_phrase": {"prefLabel.edge_ngram": text}},
                {"match_phrase": {"aliases.edge_ngram": text}},
            ],
            minimum_should_match=1,
        )
        return {
            "function_score": {
                "query": phrase,
                "functions": [
                    _popularity(ANNOTATIONS_COUNT_FIELD, "ln1p"),
                    _popularity(PREV_WEEK_ANNOTATIONS_COUNT_FIELD, "ln2p"),
                    {"filter": _term("type", "topics"), "weight": PHRASE_MATCH_TOPICS_WEIGHT},
                ],
                "score_mode": "multiply",
                "boost_mode": "replace",
                "boost": PHRASE_MATCH_BOOST,
            }
        }

    def text_mode_query(self, text: str, scope: QueryScope) -> SearchRequest:
        """Organisation lookup that also matches abbreviations by prefix.

        Popularity plays no part.  Callers order the hits by label length
        after projection.
        """
        must = _bool(
            should=[
                _match("prefLabel.edge_ngram", text),
                _match("aliases.edge_ngram", text),
                _prefix("prefLabel.exact_match", text),
                _prefix("aliases.exact_match", text),
            ],
            minimum_should_match=1,
        )
        should = [
            _match("aliases.edge_ngram", text, TEXT_MODE_EDGE_NGRAM_BOOST),
            _match("prefLabel.edge_ngram", text, TEXT_MODE_EDGE_NGRAM_BOOST),
            _term("directType", PUBLIC_COMPANY_URI, TEXT_MODE_PUBLIC_COMPANY_BOOST),
            _term("type", "organisations", TEXT_MODE_ORGANISATION_BOOST),
        ]
        body = {
            "size": self._autocomplete_result_limit,
            "min_score": TEXT_MODE_MIN_SCORE,
            "query": _scoped(scope, must=[must], should=should),
        }
        return SearchRequest(body=body, search_type=DFS_QUERY_THEN_FETCH)

    def by_type_query(self, types: ResolvedTypes, include_deprecated: bool = False) -> SearchRequest:
        """List concepts of one type, unscored."""
        body = {
            "size": self._search_result_limit,
            "query": _scoped(QueryScope(types=types, include_deprecated=include_deprecated)),
        }
        return SearchRequest(body=body)

    @staticmethod
    def by_ids_query(ids: Sequence[str], include_deprecated: bool = False) -> SearchRequest:
        """Fetch concepts by document id; page size equals the number of ids."""
        body = {
            "size": len(ids),
            "query": _bool(
                filter=[{"ids": {"values": list(ids)}}],
                must_not=[] if include_deprecated else [deprecation_filter()],
            ),
        }
        return SearchRequest(body=body)

    @staticmethod
    def best_match_query(term: str, scope: QueryScope) -> SearchRequest:
        """Top alias match for one candidate string: every word must appear."""
        body = {
            "size": 1,
            "query": _scoped(scope, must=[_match("aliases", term, operator="and")]),
        }
        return SearchRequest(body=body, search_type=DFS_QUERY_THEN_FETCH)

    def best_match_bundle(
        self, terms: Sequence[str], scope: QueryScope
    ) -> list[tuple[str, SearchRequest]]:
        """One independent query per distinct candidate, in input order."""
        bundle: list[tuple[str, SearchRequest]] = []
        seen: set[str] = set()
        for term in terms:
            if term in seen:
                continue
            seen.add(term)
            bundle.append((term, self.best_match_query(term, scope)))
        return bundle
