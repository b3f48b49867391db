import json
import logging
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union

import numpy as np
from pydantic import ValidationError as PydanticValidationError

from .errors import NotLoadedError, SchemaError
from .schemas import DatasetSnapshot, Entry
from .similarity import rescale_rows


logger = logging.getLogger(__name__)

SnapshotSource = Union[str, Path, Mapping[str, Any]]


def _read_snapshot(source: SnapshotSource) -> Tuple[DatasetSnapshot, str]:
    """Parse and schema-validate a snapshot from a path or a mapping."""
    if isinstance(source, Mapping):
        raw: Any = source
        label = "<mapping>"
    else:
        path = Path(source)
        label = str(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SchemaError(
                f"Dataset snapshot not found: {path}. "
                "Run: python scripts/prepare_embeddings.py"
            ) from e
        except OSError as e:
            raise SchemaError(f"Cannot read dataset snapshot '{path}': {e}") from e
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Error parsing dataset snapshot '{path}': {e}") from e

    try:
        return DatasetSnapshot.model_validate(raw), label
    except PydanticValidationError as e:
        raise SchemaError(f"Invalid dataset snapshot '{label}': {e}") from e


class DatasetStore:
    """Immutable, in-memory collection of pre-embedded catalog entries.

    The store is built once with `load()` and is read-only afterwards, so any
    number of concurrent searches may read it without locking. `load()` itself
    is guarded: concurrent callers block until the first build completes and
    later calls are no-ops.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Tuple[Entry, ...] = ()
        self._matrix: Optional[np.ndarray] = None
        self._directions: Optional[np.ndarray] = None
        self._direction_norms: Optional[np.ndarray] = None
        self._loaded = False

        self.version: Optional[int] = None
        self.model: str = ""
        self.dimensions: int = 0
        self.generated_at: Optional[datetime] = None
        self.source: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self, source: SnapshotSource) -> None:
        """Load the snapshot once. Raises SchemaError; the store is left untouched on failure."""
        if self._loaded:
            logger.info("Dataset already loaded, skipping...")
            return

        with self._lock:
            if self._loaded:
                logger.info("Dataset already loaded, skipping...")
                return

            start = time.perf_counter()
            snapshot, label = _read_snapshot(source)
            logger.info("Loading dataset entries from %s", label)
            entries, matrix, directions, direction_norms, dim = self._build(snapshot)

            # Publish everything before flipping the flag readers check.
            self._entries = entries
            self._matrix = matrix
            self._directions = directions
            self._direction_norms = direction_norms
            self.version = snapshot.version
            self.model = snapshot.model
            self.dimensions = dim
            self.generated_at = snapshot.generated_at
            self.source = label
            self._loaded = True

            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "Loaded %d entries (%dD, model=%s) in %.0fms",
                len(entries),
                dim,
                snapshot.model or "?",
                elapsed_ms,
            )

    def _build(
        self, snapshot: DatasetSnapshot
    ) -> Tuple[Tuple[Entry, ...], np.ndarray, np.ndarray, np.ndarray, int]:
        raw_entries = snapshot.entries
        if not raw_entries:
            raise SchemaError("Dataset snapshot contains no entries")

        # Declared dimension wins when present and non-zero.
        dim = snapshot.dimensions or len(raw_entries[0].embedding)
        for i, raw in enumerate(raw_entries):
            if len(raw.embedding) != dim:
                raise SchemaError(
                    f"entries[{i}] ('{raw.text}') has dim {len(raw.embedding)} "
                    f"but dataset expects {dim}"
                )

        if snapshot.total_entries is not None and snapshot.total_entries != len(raw_entries):
            logger.warning(
                "Snapshot declares totalEntries=%d but contains %d entries",
                snapshot.total_entries,
                len(raw_entries),
            )

        matrix = np.array([raw.embedding for raw in raw_entries], dtype=np.float64)
        # Norms via rescaled rows so tiny or huge embeddings stay finite and non-zero.
        directions, scales = rescale_rows(matrix)
        direction_norms = np.linalg.norm(directions, axis=1)
        norms = scales * direction_norms
        for arr in (matrix, directions, direction_norms, norms):
            arr.setflags(write=False)

        entries: List[Entry] = [
            Entry(
                text=raw.text,
                category=raw.category,
                description=raw.description,
                embedding=matrix[i],
                norm=float(norms[i]),
                direction=directions[i],
                direction_norm=float(direction_norms[i]),
            )
            for i, raw in enumerate(raw_entries)
        ]
        return tuple(entries), matrix, directions, direction_norms, dim

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise NotLoadedError("Dataset not loaded. Call load() first.")

    def count(self) -> int:
        return len(self._entries)

    def entries(self) -> Tuple[Entry, ...]:
        return self._entries

    @property
    def matrix(self) -> np.ndarray:
        """Read-only N x D embedding matrix in insertion order."""
        self._require_loaded()
        assert self._matrix is not None
        return self._matrix

    @property
    def directions(self) -> np.ndarray:
        """Read-only rows of `matrix`, each divided by its largest absolute coordinate."""
        self._require_loaded()
        assert self._directions is not None
        return self._directions

    @property
    def direction_norms(self) -> np.ndarray:
        """Read-only norms of `directions`, aligned with `matrix`."""
        self._require_loaded()
        assert self._direction_norms is not None
        return self._direction_norms
