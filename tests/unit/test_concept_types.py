"""Unit tests for the concept type registry and id helpers."""

from __future__ import annotations

import re

import pytest

from concept_search.services import concept_types
from concept_search.services.concept_types import (
    ResolvedTypes,
    canonical_id,
    extract_uuid,
    resolve_types,
    to_external,
    to_internal,
    validate_for_authors_search,
    validate_text_mode_types,
)
from concept_search.utils.errors import InputError
from tests.conftest import GENRE, ORGANISATION, PERSON, PUBLIC_COMPANY, TOPIC, UUID_1

_CANONICAL_RE = re.compile(
    r"^http://api\.ft\.com/things/[0-9a-f]{8}-([0-9a-f]{4}-){3}[0-9a-f]{12}$"
)


# ======================================================================
# Mapping
# ======================================================================


class TestTypeMapping:
    @pytest.mark.parametrize(
        ("uri", "token"),
        [
            ("http://www.ft.com/ontology/Genre", "genres"),
            ("http://www.ft.com/ontology/product/Brand", "brands"),
            ("http://www.ft.com/ontology/person/Person", "people"),
            ("http://www.ft.com/ontology/organisation/Organisation", "organisations"),
            ("http://www.ft.com/ontology/Location", "locations"),
            ("http://www.ft.com/ontology/Topic", "topics"),
            ("http://www.ft.com/ontology/AlphavilleSeries", "alphaville-series"),
        ],
    )
    def test_mapping_is_a_bijection(self, uri: str, token: str) -> None:
        assert to_internal(uri) == token
        assert to_external(token) == uri

    def test_unknown_values_map_to_empty(self) -> None:
        assert to_internal("http://www.ft.com/ontology/Unknown") == ""
        assert to_external("widgets") == ""

    def test_public_company_has_no_token(self) -> None:
        assert to_internal(PUBLIC_COMPANY) == ""
        assert concept_types.is_known_type(PUBLIC_COMPANY)


class TestResolveTypes:
    def test_resolves_tokens_in_order_without_duplicates(self) -> None:
        resolved = resolve_types([TOPIC, GENRE, TOPIC])
        assert resolved == ResolvedTypes(tokens=("topics", "genres"), public_company=False)

    def test_public_company_sets_flag(self) -> None:
        resolved = resolve_types([ORGANISATION, PUBLIC_COMPANY])
        assert resolved.tokens == ("organisations",)
        assert resolved.public_company is True

    def test_only_public_company(self) -> None:
        resolved = resolve_types([PUBLIC_COMPANY])
        assert resolved.tokens == ()
        assert resolved.public_company is True
        assert not resolved.is_empty

    def test_unknown_type_raises_input_error(self) -> None:
        with pytest.raises(InputError, match="invalid concept type http://example.com/Nope"):
            resolve_types([GENRE, "http://example.com/Nope"])

    def test_empty_input(self) -> None:
        assert resolve_types([]).is_empty


# ======================================================================
# Validation helpers
# ======================================================================


class TestValidateForAuthorsSearch:
    def test_accepts_single_person_with_authors(self) -> None:
        validate_for_authors_search([PERSON], "authors")

    def test_no_types(self) -> None:
        with pytest.raises(InputError, match="no concept type specified"):
            validate_for_authors_search([], "authors")

    def test_multiple_types(self) -> None:
        with pytest.raises(InputError, match="the combination of concept types is not supported"):
            validate_for_authors_search([PERSON, GENRE], "authors")

    def test_non_person_type(self) -> None:
        with pytest.raises(InputError, match=f"invalid concept type {GENRE}"):
            validate_for_authors_search([GENRE], "authors")

    def test_other_boost(self) -> None:
        with pytest.raises(InputError, match="invalid boost type"):
            validate_for_authors_search([PERSON], "popularity")


class TestValidateTextModeTypes:
    @pytest.mark.parametrize(
        "types",
        [[ORGANISATION], [PUBLIC_COMPANY], [PERSON, PUBLIC_COMPANY]],
    )
    def test_accepts_any_organisation_like_type(self, types: list[str]) -> None:
        validate_text_mode_types(types)

    @pytest.mark.parametrize("types", [[], [PERSON], [GENRE, TOPIC]])
    def test_rejects_without_organisation_like_type(self, types: list[str]) -> None:
        with pytest.raises(InputError, match="text mode but no organisation or public company type"):
            validate_text_mode_types(types)


# ======================================================================
# Identifiers
# ======================================================================


class TestIdentifiers:
    def test_extract_uuid_from_thing_uri(self) -> None:
        assert extract_uuid(f"http://www.ft.com/thing/{UUID_1}") == UUID_1

    def test_extract_uuid_fails_without_uuid(self) -> None:
        with pytest.raises(ValueError, match="doesn't contain a valid UUID substring"):
            extract_uuid("http://www.ft.com/thing/not-a-uuid")

    def test_canonical_id_rewrites_path(self) -> None:
        assert canonical_id(f"http://www.ft.com/thing/{UUID_1}") == (
            f"http://api.ft.com/things/{UUID_1}"
        )

    @pytest.mark.parametrize(
        "concept_id",
        [
            f"http://www.ft.com/thing/{UUID_1}",
            f"http://api.ft.com/things/{UUID_1}",
            f"http://api.ft.com/people/{UUID_1}",
            UUID_1,
        ],
    )
    def test_canonical_id_preserves_uuid(self, concept_id: str) -> None:
        canonical = canonical_id(concept_id)
        assert _CANONICAL_RE.match(canonical)
        assert extract_uuid(canonical) == extract_uuid(concept_id)
