"""Concept search service: one method per supported search.

Each method resolves concept types, asks the :class:`QueryBuilder` for the
query, sends it through the :class:`SearchDispatcher` to the index the
request's authority scope selects, and projects the hits.  Parameter-level
validation has already happened in the API layer; the checks here are the
domain ones (known types, authors boost on a single Person type).
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from concept_search.models.concept import Concept
from concept_search.models.search import SearchFlags
from concept_search.services import concept_types
from concept_search.services.dispatcher import SearchDispatcher
from concept_search.services.projector import ResultOrder, project_hits
from concept_search.services.query_builder import QueryBuilder, QueryScope
from concept_search.utils.errors import ConceptNotFoundError, InputError
from concept_search.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class ConceptSearchService:
    """Search operations behind ``GET /concepts`` and ``POST /concept/search``."""

    def __init__(self, builder: QueryBuilder, dispatcher: SearchDispatcher) -> None:
        self._builder = builder
        self._dispatcher = dispatcher

    # ------------------------------------------------------------------
    # Catalog endpoint
    # ------------------------------------------------------------------

    async def find_by_type(
        self,
        concept_type: str,
        *,
        include_deprecated: bool = False,
        search_all_authorities: bool = False,
    ) -> list[Concept]:
        """List concepts of *concept_type*, alphabetically by prefLabel."""
        types = concept_types.resolve_types([concept_type])
        request = self._builder.by_type_query(types, include_deprecated)
        result = await self._dispatcher.search(
            request, self._dispatcher.index_for(search_all_authorities)
        )
        return project_hits(result.hits, order=ResultOrder.PREF_LABEL)

    async def find_by_ids(self, ids: Sequence[str]) -> list[Concept]:
        """Fetch concepts by id from the extended index, in no particular order."""
        request = self._builder.by_ids_query(ids)
        result = await self._dispatcher.search(request, self._dispatcher.extended_index)
        return project_hits(result.hits)

    async def search_by_text_and_types(
        self,
        text: str,
        types: Sequence[str],
        *,
        boost: str | None = None,
        include_deprecated: bool = False,
        search_all_authorities: bool = False,
    ) -> list[Concept]:
        """Typeahead search (``mode=search``) restricted to *types*."""
        if not types:
            raise InputError("no concept type specified")
        if boost is not None:
            concept_types.validate_for_authors_search(types, boost)
        scope = QueryScope(
            types=concept_types.resolve_types(types),
            include_deprecated=include_deprecated,
            boost_authors=boost is not None,
        )
        _logger.info("concept_search", mode="search", q=text, types=list(types), boost=boost)
        result = await self._dispatcher.search(
            self._builder.term_query(text, scope),
            self._dispatcher.index_for(search_all_authorities),
        )
        return project_hits(result.hits)

    async def search_organisations(
        self,
        text: str,
        types: Sequence[str],
        *,
        include_deprecated: bool = False,
        search_all_authorities: bool = False,
    ) -> list[Concept]:
        """Organisation lookup (``mode=text``), shortest labels first."""
        concept_types.validate_text_mode_types(types)
        scope = QueryScope(
            types=concept_types.resolve_types(types),
            include_deprecated=include_deprecated,
        )
        _logger.info("concept_search", mode="text", q=text, types=list(types))
        result = await self._dispatcher.search(
            self._builder.text_mode_query(text, scope),
            self._dispatcher.index_for(search_all_authorities),
        )
        return project_hits(result.hits, order=ResultOrder.PREF_LABEL_LENGTH)

    # ------------------------------------------------------------------
    # Term / best-match endpoint
    # ------------------------------------------------------------------

    def _scope(
        self,
        types: Sequence[str] | None,
        boost: str | None,
        filter_type: str | None,
        flags: SearchFlags,
    ) -> QueryScope:
        types = list(types or [])
        if boost is not None:
            if boost != concept_types.AUTHORS:
                raise InputError("invalid boost type")
            concept_types.validate_for_authors_search(types, boost)
        if filter_type is not None:
            if filter_type != concept_types.AUTHORS:
                raise InputError("invalid filter type")
            concept_types.validate_for_authors_search(types, filter_type)
        return QueryScope(
            types=concept_types.resolve_types(types),
            include_deprecated=flags.include_deprecated,
            boost_authors=boost is not None,
            filter_authors=filter_type is not None,
        )

    async def search_term(
        self,
        term: str,
        flags: SearchFlags,
        *,
        types: Sequence[str] | None = None,
        boost: str | None = None,
        filter_type: str | None = None,
    ) -> list[Concept]:
        """Free-text search for one term.

        Raises
        ------
        ConceptNotFoundError
            If nothing matched.
        """
        scope = self._scope(types, boost, filter_type, flags)
        _logger.info("concept_search", mode="term", term=term)
        result = await self._dispatcher.search(
            self._builder.term_query(term, scope),
            self._dispatcher.index_for(flags.search_all_authorities),
        )
        concepts = project_hits(
            result.hits,
            include_score=flags.include_score,
            include_authors=flags.include_authors,
        )
        if result.total == 0 or not concepts:
            raise ConceptNotFoundError()
        return concepts

    async def best_match(
        self,
        terms: Sequence[str],
        flags: SearchFlags,
        *,
        types: Sequence[str] | None = None,
        boost: str | None = None,
        filter_type: str | None = None,
    ) -> dict[str, list[Concept]]:
        """Best concept for each candidate string, fetched in one multi-search.

        Every candidate is a key of the result, mapped to zero or one concept.

        Raises
        ------
        ConceptNotFoundError
            If no candidate matched anything.
        """
        scope = self._scope(types, boost, filter_type, flags)
        bundle = self._builder.best_match_bundle(terms, scope)
        _logger.info("concept_search", mode="best_match", terms=[term for term, _ in bundle])

        results = await self._dispatcher.multi_search(
            [request for _, request in bundle],
            self._dispatcher.index_for(flags.search_all_authorities),
        )
        matches: dict[str, list[Concept]] = {}
        for (term, _), result in zip(bundle, results):
            concepts = project_hits(
                result.hits[:1],
                include_score=flags.include_score,
                include_authors=flags.include_authors,
            )
            matches[term] = concepts[:1]

        if not any(matches.values()):
            raise ConceptNotFoundError()
        return matches
