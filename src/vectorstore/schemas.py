from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .similarity import rescale


@dataclass(frozen=True, eq=False)
class Entry:
    """One catalog entry held by the DatasetStore.

    `embedding` is a read-only view into the store's matrix and `norm` is its
    Euclidean norm, computed once at load time. `direction` is the embedding
    divided by its largest absolute coordinate, with `direction_norm` its norm;
    scoring uses these so extreme magnitudes neither underflow nor overflow.
    Both are derived here when not supplied by the store.
    """

    text: str
    category: str
    description: str
    embedding: np.ndarray
    norm: float
    direction: Optional[np.ndarray] = None
    direction_norm: float = 0.0

    def __post_init__(self) -> None:
        if self.direction is None:
            direction, _ = rescale(self.embedding)
            direction.setflags(write=False)
            object.__setattr__(self, "direction", direction)
            object.__setattr__(self, "direction_norm", float(np.linalg.norm(direction)))


@dataclass
class SearchItem:
    text: str
    category: str
    description: str
    score: float

    def snippet(self, max_len: int = 160) -> str:
        """Return a centered snippet of the description: head + ... + tail.

        If the description is shorter than or equal to max_len, returns it in full.
        If max_len <= 3, returns leading max_len characters (no ellipsis logic).
        """
        s = self.description or ""
        if len(s) <= max_len:
            return s
        if max_len <= 3:
            return s[:max_len]
        budget = max_len - 3
        head_len = budget // 2
        tail_len = budget - head_len
        return f"{s[:head_len]}...{s[-tail_len:]}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "category": self.category,
            "description": self.description,
            "score": self.score,
        }


def format_search_item(item: "SearchItem", max_len: int = 160) -> str:
    """Create a compact string representation for logs/printing.

    Example: "text=joy; category=n.; score=0.8731; description=<snippet>"
    """
    return (
        f"text={item.text}; category={item.category}; "
        f"score={item.score:.4f}; description={item.snippet(max_len)}"
    )


class RawEntry(BaseModel):
    """A snapshot entry as written by the ETL step."""

    text: str
    category: str = ""
    description: str = ""
    embedding: List[float]

    @field_validator("embedding", mode="before")
    @classmethod
    def _numeric_embedding(cls, value: Any) -> List[float]:
        if not isinstance(value, (list, tuple)):
            raise ValueError("embedding must be an array of numbers")
        if not value:
            raise ValueError("embedding must not be empty")
        out: List[float] = []
        for i, v in enumerate(value):
            # bool is an int subclass; it is not a coordinate
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise ValueError(f"embedding[{i}] is not numeric: {v!r}")
            if not math.isfinite(v):
                raise ValueError(f"embedding[{i}] is not finite: {v!r}")
            out.append(float(v))
        return out


class DatasetSnapshot(BaseModel):
    """Serialized, pre-embedded dataset loaded once at startup."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = 1
    model: str = ""
    dimensions: Optional[int] = Field(default=None, ge=0)
    total_entries: Optional[int] = Field(default=None, alias="totalEntries")
    generated_at: Optional[datetime] = Field(default=None, alias="generatedAt")
    entries: List[RawEntry]
