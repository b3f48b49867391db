from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.vectorstore.data_store import DatasetStore
from src.vectorstore.embeddings import EmbeddingProvider
from src.vectorstore.errors import NotLoadedError, ProviderError, ValidationError
from src.vectorstore.retriever import Retriever, validate_top_k
from src.vectorstore.schemas import SearchItem


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchServiceConfig:
    default_top_k: int = 5
    # Seconds to wait on the async embedding call; None waits indefinitely.
    embedding_timeout_sec: Optional[float] = None


@dataclass
class SuggestResult:
    query: str
    results: List[SearchItem] = field(default_factory=list)
    elapsed_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "results": [item.to_dict() for item in self.results],
            "elapsedMs": self.elapsed_ms,
        }


class SearchService:
    """Application-layer suggestion service.

    Turns free text into a query vector via the embedding provider, ranks the
    loaded DatasetStore against it and reports elapsed wall-clock time. The
    store and provider are injected; nothing here is global.

    Provider failures are wrapped in ProviderError and never retried.
    """

    def __init__(
        self,
        store: DatasetStore,
        embedder: Optional[EmbeddingProvider] = None,
        config: SearchServiceConfig | None = None,
    ):
        self.config = config or SearchServiceConfig()
        self.store = store
        self.embedder = embedder
        self.retriever = Retriever(store=self.store)

    def _prepare(
        self, text: str, top_k: Optional[int], embedder: Optional[EmbeddingProvider]
    ) -> tuple[str, int, EmbeddingProvider]:
        """Validate everything that can be checked before the remote call."""
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Query cannot be empty")
        k = validate_top_k(self.config.default_top_k if top_k is None else top_k)
        if not self.store.is_loaded:
            raise NotLoadedError("Dataset not loaded. Call load() first.")
        provider = embedder or self.embedder
        if provider is None:
            raise ValueError("No embedding provider configured")
        return text.strip(), k, provider

    def _finish(self, query: str, vector: List[float], k: int, start: float) -> SuggestResult:
        items = self.retriever.retrieve(vector, limit=k)
        elapsed_ms = int(round((time.perf_counter() - start) * 1000))
        logger.info(
            "Suggested %d terms for %r (k=%d) in %dms", len(items), query, k, elapsed_ms
        )
        return SuggestResult(query=query, results=items, elapsed_ms=elapsed_ms)

    def suggest(
        self,
        text: str,
        top_k: Optional[int] = None,
        embedder: Optional[EmbeddingProvider] = None,
    ) -> SuggestResult:
        """Suggest catalog entries for a free-text query (synchronous)."""
        query, k, provider = self._prepare(text, top_k, embedder)

        start = time.perf_counter()
        try:
            vector = provider.embed_query(query)
        except Exception as exc:
            logger.warning("Embedding provider failed for %r: %s", query, exc)
            raise ProviderError(f"Embedding failed: {exc}") from exc
        return self._finish(query, vector, k, start)

    async def asuggest(
        self,
        text: str,
        top_k: Optional[int] = None,
        embedder: Optional[EmbeddingProvider] = None,
    ) -> SuggestResult:
        """Async variant of suggest(); the embedding call is the only await point.

        Cancellation of the awaiting task propagates unchanged.
        """
        query, k, provider = self._prepare(text, top_k, embedder)

        start = time.perf_counter()
        timeout = self.config.embedding_timeout_sec
        try:
            vector = await asyncio.wait_for(provider.aembed_query(query), timeout=timeout)
        except asyncio.TimeoutError as exc:
            # Same class as the builtin on 3.11+; only our own limit is reported as such.
            if timeout is None:
                logger.warning("Embedding provider failed for %r: %s", query, exc)
                raise ProviderError(f"Embedding failed: {exc}") from exc
            logger.warning("Embedding provider timed out after %ss for %r", timeout, query)
            raise ProviderError(f"Embedding timed out after {timeout}s") from exc
        except Exception as exc:
            logger.warning("Embedding provider failed for %r: %s", query, exc)
            raise ProviderError(f"Embedding failed: {exc}") from exc
        return self._finish(query, vector, k, start)
