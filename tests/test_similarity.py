import math

import numpy as np
import pytest

from src.vectorstore.schemas import Entry
from src.vectorstore.similarity import batch_scores, score, vector_norm


def make_entry(values):
    arr = np.asarray(values, dtype=np.float64)
    arr.setflags(write=False)
    return Entry(text="t", category="c", description="d", embedding=arr, norm=vector_norm(arr))


VECTORS = [
    [1.0, 0.0, 0.0],
    [0.3, -0.7, 2.5],
    [-1.5, 4.0, 0.25],
    [1e-3, 2e-3, -5e-4],
]


@pytest.mark.parametrize("v", VECTORS)
def test_self_similarity_is_one(v):
    assert score(v, vector_norm(v), make_entry(v)) == pytest.approx(1.0)


@pytest.mark.parametrize("a", VECTORS)
@pytest.mark.parametrize("b", VECTORS)
def test_symmetry(a, b):
    ab = score(a, vector_norm(a), make_entry(b))
    ba = score(b, vector_norm(b), make_entry(a))
    assert ab == ba


def test_orthogonal_and_opposite():
    assert score([1.0, 0.0], 1.0, make_entry([0.0, 1.0])) == 0.0
    assert score([1.0, 0.0], 1.0, make_entry([-2.0, 0.0])) == pytest.approx(-1.0)


def test_zero_vector_scores_zero():
    zero = [0.0, 0.0]
    assert score(zero, 0.0, make_entry([1.0, 2.0])) == 0.0
    assert score([1.0, 2.0], vector_norm([1.0, 2.0]), make_entry(zero)) == 0.0
    result = score(zero, 0.0, make_entry(zero))
    assert result == 0.0
    assert math.isfinite(result)


def test_dimension_mismatch_scores_zero():
    assert score([1.0, 0.0, 0.0], 1.0, make_entry([1.0, 0.0])) == 0.0


def test_batch_matches_single_scores():
    rows = [[1.0, 0.0], [0.0, 1.0], [0.0, 0.0], [3.0, 4.0]]
    matrix = np.asarray(rows, dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1)
    query = [0.6, 0.8]
    qn = vector_norm(query)

    batch = batch_scores(query, qn, matrix, norms)

    expected = [score(query, qn, make_entry(r)) for r in rows]
    assert batch.tolist() == pytest.approx(expected)
    assert batch[2] == 0.0
    assert np.all(np.isfinite(batch))


def test_batch_policies():
    matrix = np.asarray([[1.0, 0.0], [0.0, 1.0]])
    norms = np.linalg.norm(matrix, axis=1)
    assert batch_scores([1.0, 0.0, 0.0], 1.0, matrix, norms).tolist() == [0.0, 0.0]
    assert batch_scores([0.0, 0.0], 0.0, matrix, norms).tolist() == [0.0, 0.0]


@pytest.mark.parametrize("v", [[1e-200, 1e-200], [1e200, 1e200], [1e-310, 0.0], [1e308, -1e308]])
def test_extreme_magnitudes_self_similarity(v):
    s = score(v, vector_norm(v), make_entry(v))
    assert s == pytest.approx(1.0)


def test_extreme_magnitude_norms_are_finite_and_non_zero():
    assert vector_norm([1e-200, 1e-200]) == pytest.approx(math.sqrt(2) * 1e-200, rel=1e-12)
    assert vector_norm([1e200, 1e200]) == pytest.approx(math.sqrt(2) * 1e200, rel=1e-12)


def test_extreme_magnitudes_across_scales():
    # direction matters, magnitude does not
    assert score([1e200, 0.0], vector_norm([1e200, 0.0]), make_entry([1e-200, 0.0])) == pytest.approx(1.0)
    assert score([1e200, 1e200], vector_norm([1e200, 1e200]), make_entry([0.0, 1e-200])) == pytest.approx(
        math.sqrt(0.5)
    )


def test_batch_never_returns_non_finite():
    matrix = np.asarray([[1e200, 1e200], [1e-200, 1e-200], [0.0, 1.0]])
    norms = np.linalg.norm(matrix, axis=1)  # raw: inf and 0.0 for the first two rows
    out = batch_scores([1e200, 1e200], vector_norm([1e200, 1e200]), matrix, norms)
    assert np.all(np.isfinite(out))
