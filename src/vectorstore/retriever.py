from __future__ import annotations

from typing import List, Sequence, overload

import numpy as np

from .data_store import DatasetStore
from .errors import ValidationError
from .schemas import SearchItem
from .similarity import VectorLike, as_vector, batch_scores, vector_norm


def validate_top_k(k: int) -> int:
    """Reject non-integer or non-positive k. Values above N are fine (clamped later)."""
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise ValidationError(f"topK must be an integer, got {k!r}")
    if k < 1:
        raise ValidationError(f"topK must be >= 1, got {k}")
    return int(k)


def top_k(query: VectorLike, k: int, store: DatasetStore) -> List[SearchItem]:
    """Score every entry against `query` and return the k best.

    Results are ordered by descending score; equal scores keep the store's
    insertion order. Returns min(k, N) items.
    """
    k = validate_top_k(k)
    directions = store.directions  # raises NotLoadedError before any scan
    direction_norms = store.direction_norms
    entries = store.entries()

    q = as_vector(query)
    scores = batch_scores(q, vector_norm(q), directions, direction_norms)

    # Stable sort on negated scores: ties resolve by ascending index.
    order = np.argsort(-scores, kind="stable")[:k]
    items: List[SearchItem] = []
    for idx in order:
        entry = entries[int(idx)]
        items.append(
            SearchItem(
                text=entry.text,
                category=entry.category,
                description=entry.description,
                score=float(scores[idx]),
            )
        )
    return items


class Retriever:
    """Exact brute-force retrieval over a loaded DatasetStore."""

    def __init__(self, store: DatasetStore):
        self.store = store

    @overload
    def retrieve(self, query_or_queries: Sequence[float], limit: int = 5) -> List[SearchItem]: ...

    @overload
    def retrieve(
        self, query_or_queries: Sequence[Sequence[float]], limit: int = 5
    ) -> List[List[SearchItem]]: ...

    def retrieve(self, query_or_queries, limit: int = 5):
        """Rank the store against one query vector, or each of a batch of vectors."""
        if isinstance(query_or_queries, (list, tuple)) and not query_or_queries:
            return []
        try:
            arr = np.asarray(query_or_queries, dtype=np.float64)
        except ValueError as exc:
            raise ValueError("Input must be a vector or a list of vectors") from exc
        if arr.ndim == 1:
            return top_k(arr, limit, self.store)
        if arr.ndim == 2:
            return [top_k(row, limit, self.store) for row in arr]
        raise ValueError("Input must be a vector or a list of vectors")
