"""Pydantic response schemas for the concept search API.

Concept lists are serialised with ``by_alias=True, exclude_none=True`` so
empty optional concept fields never reach the wire.  Request bodies are not
declared here: ``POST /concept/search`` parses its body by hand so a
malformed body yields a 400 with our own message rather than FastAPI's 422.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from concept_search.models.concept import Concept


class ConceptsResponse(BaseModel):
    """Body of a successful ``GET /concepts``."""

    concepts: list[Concept] = Field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SearchResultsResponse(BaseModel):
    """Body of a successful term search on ``POST /concept/search``."""

    results: list[Concept] = Field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    message: str


class HealthCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    ok: bool
    severity: int
    business_impact: str = Field(alias="businessImpact")
    technical_summary: str = Field(alias="technicalSummary")
    panic_guide: str = Field(alias="panicGuide")
    check_output: str = Field(alias="checkOutput")
    last_updated: str = Field(alias="lastUpdated")


class HealthResponse(BaseModel):
    """Aggregated ``/__health`` document."""

    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(default=1, alias="schemaVersion")
    system_code: str = Field(alias="systemCode")
    name: str
    description: str
    checks: list[HealthCheckResponse]
    ok: bool


class BuildInfoResponse(BaseModel):
    version: str
    name: str
    system_code: str = Field(alias="systemCode")

    model_config = ConfigDict(populate_by_name=True)
