"""Concept type registry: external type URIs <-> internal index tokens.

Concept documents carry a ``type`` discriminator token (``people``,
``topics``...) while clients speak in ontology URIs.  The mapping below is a
bijection, with one exception: ``PublicCompany`` has no token of its own.
Public companies are ``organisations`` whose ``directType`` is the
PublicCompany URI, so the query builder matches them on that field.

Everything here is pure and built at import time; nothing is mutated after
startup.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from concept_search.utils.errors import InputError

GENRE_URI = "http://www.ft.com/ontology/Genre"
BRAND_URI = "http://www.ft.com/ontology/product/Brand"
PERSON_URI = "http://www.ft.com/ontology/person/Person"
ORGANISATION_URI = "http://www.ft.com/ontology/organisation/Organisation"
LOCATION_URI = "http://www.ft.com/ontology/Location"
TOPIC_URI = "http://www.ft.com/ontology/Topic"
ALPHAVILLE_SERIES_URI = "http://www.ft.com/ontology/AlphavilleSeries"
PUBLIC_COMPANY_URI = "http://www.ft.com/ontology/company/PublicCompany"

_EXTERNAL_TO_INTERNAL: dict[str, str] = {
    GENRE_URI: "genres",
    BRAND_URI: "brands",
    PERSON_URI: "people",
    ORGANISATION_URI: "organisations",
    LOCATION_URI: "locations",
    TOPIC_URI: "topics",
    ALPHAVILLE_SERIES_URI: "alphaville-series",
}
_INTERNAL_TO_EXTERNAL: dict[str, str] = {v: k for k, v in _EXTERNAL_TO_INTERNAL.items()}

# Types that make sense for the organisation-oriented "text" search mode.
TEXT_MODE_TYPES: frozenset[str] = frozenset({ORGANISATION_URI, PUBLIC_COMPANY_URI})

AUTHORS = "authors"

CANONICAL_ID_PREFIX = "http://api.ft.com/things/"
_UUID_RE = re.compile(r"[0-9a-f]{8}-([0-9a-f]{4}-){3}[0-9a-f]{12}")

INVALID_CONCEPT_TYPE = "invalid concept type {}"


@dataclass(frozen=True)
class ResolvedTypes:
    """Concept types translated for the query builder.

    ``tokens`` are the internal discriminators to filter on, in request
    order without duplicates; ``public_company`` is set when the
    PublicCompany URI was requested.
    """

    tokens: tuple[str, ...] = ()
    public_company: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.tokens and not self.public_company


def to_internal(external_uri: str) -> str:
    """Return the index token for *external_uri*, or ``""`` if unknown."""
    return _EXTERNAL_TO_INTERNAL.get(external_uri, "")


def to_external(token: str) -> str:
    """Return the type URI for index token *token*, or ``""`` if unknown."""
    return _INTERNAL_TO_EXTERNAL.get(token, "")


def is_known_type(external_uri: str) -> bool:
    return external_uri == PUBLIC_COMPANY_URI or external_uri in _EXTERNAL_TO_INTERNAL


def resolve_types(external_uris: Iterable[str]) -> ResolvedTypes:
    """Translate requested type URIs into tokens plus the PublicCompany flag.

    Raises
    ------
    InputError
        On the first URI that is neither mapped nor PublicCompany.
    """
    tokens: list[str] = []
    public_company = False
    for uri in external_uris:
        if uri == PUBLIC_COMPANY_URI:
            public_company = True
            continue
        token = to_internal(uri)
        if not token:
            raise InputError(INVALID_CONCEPT_TYPE.format(uri))
        if token not in tokens:
            tokens.append(token)
    return ResolvedTypes(tokens=tuple(tokens), public_company=public_company)


def validate_for_authors_search(concept_types: Sequence[str], directive: str | None) -> None:
    """Check that an authors boost/filter is applied to exactly one Person type.

    Raises
    ------
    InputError
        ``no concept type specified``, ``the combination of concept types is
        not supported``, ``invalid concept type <t>`` or ``invalid boost type``,
        checked in that order.
    """
    if not concept_types:
        raise InputError("no concept type specified")
    if len(concept_types) > 1:
        raise InputError("the combination of concept types is not supported")
    if to_internal(concept_types[0]) != "people":
        raise InputError(INVALID_CONCEPT_TYPE.format(concept_types[0]))
    if directive != AUTHORS:
        raise InputError("invalid boost type")


def validate_text_mode_types(concept_types: Sequence[str]) -> None:
    """Require at least one organisation-like type for text mode searches."""
    if any(t in TEXT_MODE_TYPES for t in concept_types):
        return
    raise InputError(
        "invalid or missing parameters for concept search "
        "(text mode but no organisation or public company type)"
    )


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


def extract_uuid(concept_id: str) -> str:
    """Return the first UUID embedded in *concept_id*.

    Raises
    ------
    ValueError
        If *concept_id* contains no lowercase canonical UUID.
    """
    match = _UUID_RE.search(concept_id)
    if match is None:
        raise ValueError(
            "cannot extract UUID because Id doesn't contain a valid UUID "
            f"substring: {concept_id}"
        )
    return match.group(0)


def canonical_id(concept_id: str) -> str:
    """Rewrite any concept id to ``http://api.ft.com/things/<uuid>``."""
    return CANONICAL_ID_PREFIX + extract_uuid(concept_id)
