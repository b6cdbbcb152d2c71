"""Concrete adapters for the capabilities in concept_search.interfaces."""
