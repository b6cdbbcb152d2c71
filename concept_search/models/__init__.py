"""Pydantic models for concepts and search requests."""

from concept_search.models.concept import Concept, ConceptMetrics, EsConcept
from concept_search.models.search import SearchCriteria, SearchFlags

__all__ = ["Concept", "ConceptMetrics", "EsConcept", "SearchCriteria", "SearchFlags"]
