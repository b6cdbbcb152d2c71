"""Concept Search API -- an HTTP facade over an Elasticsearch concept index."""

__version__ = "1.0.0"
