from __future__ import annotations

import asyncio
from typing import Dict, List

import pytest

from src.vectorstore.data_store import DatasetStore


def make_snapshot(entries, dimensions=None, **extra):
    snapshot = {
        "version": 1,
        "model": "test-embedding",
        "dimensions": dimensions if dimensions is not None else len(entries[0]["embedding"]),
        "totalEntries": len(entries),
        "generatedAt": "2024-01-01T00:00:00Z",
        "entries": entries,
    }
    snapshot.update(extra)
    return snapshot


def entry(text: str, embedding: List[float], category: str = "n.", description: str = "") -> Dict:
    return {
        "text": text,
        "category": category,
        "description": description or f"meaning of {text}",
        "embedding": embedding,
    }


class FakeEmbedder:
    """Returns canned vectors and records every call."""

    dim = None

    def __init__(self, vectors: Dict[str, List[float]] | None = None, default=None, error=None, delay=0.0):
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0]
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    def embed_query(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.vectors.get(text, self.default)

    async def aembed_query(self, text: str) -> List[float]:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.embed_query(text)


@pytest.fixture
def emotions_snapshot():
    return make_snapshot(
        [
            entry("joy", [1.0, 0.0]),
            entry("anger", [0.0, 1.0]),
            entry("delight", [1.0, 0.0]),
            entry("calm", [1.0, 1.0], category="adj."),
        ]
    )


@pytest.fixture
def store(emotions_snapshot):
    s = DatasetStore()
    s.load(emotions_snapshot)
    return s


@pytest.fixture
def embedder():
    return FakeEmbedder()
