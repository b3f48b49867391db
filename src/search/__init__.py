"""Search application layer.

This package provides the suggestion use case consumed by the API:
- Suggest catalog entries for a free-text query

Implementation relies on the vectorstore module (DatasetStore, Retriever) and
an injected embedding provider.
"""

from src.vectorstore.errors import (
    NotLoadedError,
    ProviderError,
    SchemaError,
    SearchError,
    ValidationError,
)

from .service import SearchService, SearchServiceConfig, SuggestResult

__all__ = [
    "SearchService",
    "SearchServiceConfig",
    "SuggestResult",
    "SearchError",
    "SchemaError",
    "ValidationError",
    "ProviderError",
    "NotLoadedError",
]
