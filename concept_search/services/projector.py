"""Result projector: backend hits -> public :class:`Concept` objects.

Per hit, in order: validate the source document, canonicalise the id,
derive ``directType`` when the document lacks one, then attach the optional
fields the request asked for.  A hit that cannot be projected is skipped
with a warning; it never fails the whole response.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

import structlog
from pydantic import ValidationError

from concept_search.models.concept import Concept, EsConcept
from concept_search.services.concept_types import canonical_id
from concept_search.services.dispatcher import SearchHit
from concept_search.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class ResultOrder(str, Enum):
    """How projected concepts are ordered before they are returned."""

    BACKEND = "backend"  # keep relevance order
    PREF_LABEL = "pref_label"  # alphabetical, for catalog listings
    PREF_LABEL_LENGTH = "pref_label_length"  # shortest label first, for text mode


def parse_ft_author(value: str | bool | None) -> bool | None:
    """``"true"`` -> True, ``"false"`` -> False, anything else -> None."""
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def project_hit(
    hit: SearchHit,
    *,
    include_score: bool = False,
    include_authors: bool = False,
) -> Concept | None:
    """Project one hit, or return ``None`` if it must be skipped."""
    if not isinstance(hit.source, dict):
        _logger.warning("unprojectable_hit", hit_id=hit.id, reason="missing source")
        return None
    try:
        es_concept = EsConcept.model_validate(hit.source)
    except ValidationError as exc:
        _logger.warning(
            "unprojectable_hit",
            hit_id=hit.id,
            reason="unmarshallable source",
            errors=exc.error_count(),
        )
        return None

    try:
        concept_id = canonical_id(es_concept.id)
    except ValueError:
        _logger.warning("unprojectable_hit", hit_id=hit.id, concept_id=es_concept.id, reason="no uuid in id")
        return None

    types = list(es_concept.types or [])
    direct_type = es_concept.direct_type or (types[-1] if types else "")

    return Concept(
        id=concept_id,
        api_url=es_concept.api_url,
        pref_label=es_concept.pref_label,
        types=types,
        direct_type=direct_type,
        aliases=es_concept.aliases or None,
        score=hit.score if include_score else None,
        is_ft_author=parse_ft_author(es_concept.is_ft_author) if include_authors else None,
        scope_note=es_concept.scope_note or None,
        is_deprecated=True if es_concept.is_deprecated else None,
        country_code=es_concept.country_code or None,
        country_of_incorporation=es_concept.country_of_incorporation or None,
    )


def project_hits(
    hits: Iterable[SearchHit],
    *,
    include_score: bool = False,
    include_authors: bool = False,
    order: ResultOrder = ResultOrder.BACKEND,
) -> list[Concept]:
    """Project every hit, drop the unprojectable ones, then apply *order*."""
    concepts: list[Concept] = []
    for hit in hits:
        concept = project_hit(hit, include_score=include_score, include_authors=include_authors)
        if concept is not None:
            concepts.append(concept)

    # list.sort is stable, so ties keep backend relevance order.
    if order is ResultOrder.PREF_LABEL:
        concepts.sort(key=lambda c: c.pref_label)
    elif order is ResultOrder.PREF_LABEL_LENGTH:
        concepts.sort(key=lambda c: len(c.pref_label))
    return concepts
