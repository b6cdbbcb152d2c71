"""Concept models: the backend document shape and the public response shape.

:class:`EsConcept` mirrors a document as stored in the search index (a
superset of what clients may see).  :class:`Concept` is the public shape; the
projector is the only code that turns one into the other.  Fields are
snake_case in Python and camelCase on the wire via aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ConceptMetrics(BaseModel):
    """Popularity counters maintained alongside each indexed concept."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    annotations_count: float = Field(default=0.0, alias="annotationsCount")
    prev_week_annotations_count: float = Field(default=0.0, alias="prevWeekAnnotationsCount")


class EsConcept(BaseModel):
    """A concept document as stored in the search index.

    ``type`` is the internal discriminator token (``people``, ``topics``...),
    ``is_ft_author`` is stored as the string ``"true"``/``"false"`` and
    ``authorities`` lists the provenance systems the concept came from.
    Unknown fields are ignored; fields with the wrong JSON type fail
    validation so the projector can skip the hit.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: str = ""
    api_url: str = Field(default="", alias="apiUrl")
    pref_label: str = Field(default="", alias="prefLabel")
    types: list[str] | None = None
    direct_type: str | None = Field(default=None, alias="directType")
    aliases: list[str] | None = None
    is_ft_author: str | bool | None = Field(default=None, alias="isFTAuthor")
    is_deprecated: bool = Field(default=False, alias="isDeprecated")
    scope_note: str | None = Field(default=None, alias="scopeNote")
    metrics: ConceptMetrics | None = None
    country_code: str | None = Field(default=None, alias="countryCode")
    country_of_incorporation: str | None = Field(
        default=None, alias="countryOfIncorporation"
    )
    authorities: list[str] | None = None


class Concept(BaseModel):
    """A concept as returned to API clients.

    Optional fields are ``None`` when they must be left out of the JSON;
    serialise with ``model_dump(by_alias=True, exclude_none=True)``.
    ``is_deprecated`` is ``None`` rather than ``False`` for live concepts.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    api_url: str = Field(default="", alias="apiUrl")
    pref_label: str = Field(default="", alias="prefLabel")
    types: list[str] = Field(default_factory=list)
    direct_type: str = Field(default="", alias="directType")
    aliases: list[str] | None = None
    score: float | None = None
    is_ft_author: bool | None = Field(default=None, alias="isFTAuthor")
    scope_note: str | None = Field(default=None, alias="scopeNote")
    is_deprecated: bool | None = Field(default=None, alias="isDeprecated")
    country_code: str | None = Field(default=None, alias="countryCode")
    country_of_incorporation: str | None = Field(
        default=None, alias="countryOfIncorporation"
    )

    def to_json(self) -> dict:
        """Return the wire representation with empty optional fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)
