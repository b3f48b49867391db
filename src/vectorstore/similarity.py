"""Cosine similarity between a query vector and catalog entries.

Two numeric policies apply everywhere in this module and are deliberate:

- Dimension mismatch: if the query length differs from the entry length the
  score is 0.0. The store guarantees a single dimension for all entries, so
  this only triggers when an external vector of the wrong size arrives; we
  degrade the result instead of failing the request.
- Zero norm: if either vector is the zero vector, cosine similarity is
  undefined and the score is 0.0. Callers never see NaN or Infinity.

Vectors are divided by their largest absolute coordinate before any dot
product or norm. Cosine similarity is scale-invariant, and the rescaled
values stay in [-1, 1], so very small or very large embeddings neither
underflow to a zero norm nor overflow to inf.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence, Tuple, Union

import numpy as np

if TYPE_CHECKING:
    from .schemas import Entry

VectorLike = Union[Sequence[float], np.ndarray]


def as_vector(values: VectorLike) -> np.ndarray:
    """Coerce a query vector into a 1-D float64 array."""
    return np.asarray(values, dtype=np.float64).reshape(-1)


def rescale(values: VectorLike) -> Tuple[np.ndarray, float]:
    """Return (values / max|values|, max|values|); zero or non-finite vectors give zeros and 0.0."""
    v = as_vector(values)
    scale = float(np.max(np.abs(v))) if v.size else 0.0
    if scale == 0.0 or not np.isfinite(scale):
        return np.zeros_like(v), 0.0
    return v / scale, scale


def rescale_rows(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Row-wise `rescale` for an N x D matrix."""
    scales = np.max(np.abs(matrix), axis=1) if matrix.size else np.zeros(matrix.shape[0])
    safe = np.where(scales > 0.0, scales, 1.0)
    return matrix / safe[:, None], scales


def vector_norm(values: VectorLike) -> float:
    """Euclidean norm of a vector, computed without under/overflow."""
    unit, scale = rescale(values)
    return scale * float(np.linalg.norm(unit))


def score(query: VectorLike, query_norm: float, entry: Entry) -> float:
    """Cosine similarity of `query` against one entry.

    `query_norm` is the caller's precomputed norm; whether either side is the
    zero vector is decided on the rescaled vectors, so tiny non-zero inputs
    whose raw norm underflows still score normally.
    """
    q = as_vector(query)
    if q.shape[0] != entry.embedding.shape[0]:
        return 0.0
    q_dir, q_scale = rescale(q)
    if q_scale == 0.0 or entry.direction_norm == 0.0:
        return 0.0
    q_dir_norm = float(np.linalg.norm(q_dir))
    result = float(np.dot(q_dir, entry.direction) / (q_dir_norm * entry.direction_norm))
    return result if np.isfinite(result) else 0.0


def batch_scores(
    query: VectorLike, query_norm: float, matrix: np.ndarray, norms: np.ndarray
) -> np.ndarray:
    """Score `query` against every row of `matrix` at once.

    Equivalent to calling `score` per row; the same mismatch and zero-norm
    policies apply element-wise. `norms` must be the row norms of `matrix`
    as passed (the store hands over its rescaled rows and their norms).
    Returns a new float64 array of length N.
    """
    n_rows = matrix.shape[0]
    q = as_vector(query)
    if matrix.ndim != 2 or q.shape[0] != matrix.shape[1]:
        return np.zeros(n_rows, dtype=np.float64)
    q_dir, q_scale = rescale(q)
    if q_scale == 0.0:
        return np.zeros(n_rows, dtype=np.float64)

    with np.errstate(over="ignore", invalid="ignore", under="ignore"):
        dots = matrix @ q_dir
        denom = norms * float(np.linalg.norm(q_dir))
        out = np.zeros(n_rows, dtype=np.float64)
        np.divide(dots, denom, out=out, where=denom != 0.0)
    out[~np.isfinite(out)] = 0.0
    return out
