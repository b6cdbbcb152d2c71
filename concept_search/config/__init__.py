"""Configuration module -- exports Settings."""

from concept_search.config.settings import Settings

__all__ = ["Settings"]
