import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from langchain.embeddings import init_embeddings

from .config import CONFIG_FILE_PATH, load_config


logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns one non-empty text into a vector in the dataset's embedding space.

    Failures (remote error, rate limit, timeout) are raised as-is; callers treat
    them as opaque.
    """

    def embed_query(self, text: str) -> List[float]: ...

    async def aembed_query(self, text: str) -> List[float]: ...


class Embedder:
    """Generic embedding wrapper backed by LangChain's init_embeddings.

    Credentials are read from environment as required by the chosen provider
    (e.g., OPENAI_API_KEY, COHERE_API_KEY, etc.).
    """

    def __init__(
        self,
        model: Optional[str] = None,
        *,
        provider: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Start from explicit config dict if provided, else load from vectorstore/config.yaml
        if config is not None:
            cfg: Dict[str, Any] = dict(config)
        else:
            try:
                cfg = load_config(CONFIG_FILE_PATH)
            except FileNotFoundError:
                cfg = {}

        embedding_cfg = dict(cfg.get("embedding_model") or {})

        # Override with explicit args if provided
        if provider is not None:
            embedding_cfg["provider"] = provider
        if model is not None:
            embedding_cfg["model"] = model

        if not embedding_cfg.get("provider") or not embedding_cfg.get("model"):
            raise ValueError(
                "Embedding configuration missing 'provider' and/or 'model'. "
                "Set them in src/vectorstore/config.yaml under 'embedding_model', or pass them to Embedder()."
            )
        self._cfg = cfg
        self.model_name: str = str(embedding_cfg["model"])
        self._dim: Optional[int] = None
        if cfg.get("dim"):
            self._dim = int(cfg["dim"])
            logger.info("Using configured embedding dimension: %s", self._dim)

        logger.info(
            "Initializing embeddings via init_embeddings provider=%s model=%s",
            embedding_cfg.get("provider"),
            embedding_cfg.get("model"),
        )
        self._emb = init_embeddings(**embedding_cfg)

    @property
    def dim(self) -> Optional[int]:
        """Configured or last observed vector dimension; None until known."""
        return self._dim

    def _cache_dim(self, new_dim: int, source: str) -> None:
        """Cache embedding dimension once; warn on mismatches across calls."""
        if self._dim is None:
            self._dim = new_dim
            logger.info("Cached embedding dimension from %s: %s", source, new_dim)
        elif self._dim != new_dim:
            logger.warning(
                "Embedding dimension mismatch detected: cached=%s, new=%s.",
                self._dim,
                new_dim,
            )

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query string synchronously."""
        vec: List[float] = self._emb.embed_query(text)
        if vec:
            self._cache_dim(len(vec), "embed_query()")
        return vec

    async def aembed_query(self, text: str) -> List[float]:
        """Async single-text embedding; prefers provider aembed_query if available.

        Falls back to running the sync method in a worker thread to avoid
        blocking the event loop.
        """
        emb = self._emb
        if hasattr(emb, "aembed_query"):
            vec: List[float] = await emb.aembed_query(text)
        else:
            logger.debug("Using sync embed_query in async aembed_query()")
            vec = await asyncio.to_thread(emb.embed_query, text)

        if vec:
            self._cache_dim(len(vec), "aembed_query()")
        return vec
