"""Error taxonomy shared by the vectorstore and search layers.

The API layer maps these onto HTTP status codes:
  - ValidationError -> 400
  - NotLoadedError  -> 503
  - ProviderError   -> 502
  - SchemaError is raised at startup and never reaches a request.
"""

from __future__ import annotations


class SearchError(Exception):
    """Base class for all search-related failures."""


class SchemaError(SearchError):
    """Dataset snapshot is missing, malformed or dimension-inconsistent."""


class ValidationError(SearchError):
    """A single request is invalid (empty query, non-positive top_k)."""


class ProviderError(SearchError):
    """The embedding provider failed (remote error, rate limit, timeout)."""


class NotLoadedError(SearchError):
    """A search was attempted before the dataset finished loading."""
