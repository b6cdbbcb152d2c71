"""Request-side models: the POST search body and the parsed query flags."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class SearchCriteria(BaseModel):
    """JSON body of ``POST /concept/search``.

    Exactly one of ``term`` / ``best_match_terms`` must be given; that rule
    is enforced by the request validator so it can report a precise message.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    term: str | None = None
    best_match_terms: list[str] | None = Field(default=None, alias="bestMatchTerms")
    concept_types: list[str] | None = Field(default=None, alias="conceptTypes")
    boost: str | None = None
    filter: str | None = None


@dataclass(frozen=True)
class SearchFlags:
    """Query-string switches shared by both data endpoints."""

    include_score: bool = False
    include_deprecated: bool = False
    search_all_authorities: bool = False
    include_authors: bool = False
