"""Search backend adapters.

One concrete implementation of ISearchBackend
(concept_search/interfaces/search_backend.py):
    - ElasticsearchHTTPBackend -- REST over httpx, optionally SigV4-signed
"""

from concept_search.providers.search_backend.aws_auth import AWSSigV4Auth
from concept_search.providers.search_backend.elasticsearch_provider import (
    ElasticsearchHTTPBackend,
)

__all__ = ["AWSSigV4Auth", "ElasticsearchHTTPBackend"]
