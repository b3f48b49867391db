"""Convert a tabular embeddings export into a dataset snapshot.

Input CSV columns (header row skipped): category, text, description, embedding,
where `embedding` is a JSON array of numbers. Quoting follows RFC 4180 via the
csv module, so quoted commas and escaped quotes inside fields are handled.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from src.utils.text_cleaning import clean_text


logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 2000
DEFAULT_MODEL = "text-embedding-3-large"
SNAPSHOT_VERSION = 1
PROGRESS_EVERY = 500


def parse_row(fields: Sequence[str]) -> Optional[Dict[str, Any]]:
    """Turn one CSV row into a raw snapshot entry, or None if the row is unusable."""
    if len(fields) < 4:
        return None

    category = clean_text(fields[0])
    text = clean_text(fields[1])
    description = clean_text(fields[2])
    embedding_str = (fields[3] or "").strip()

    if not text or not embedding_str:
        return None

    try:
        embedding = json.loads(embedding_str)
    except json.JSONDecodeError:
        return None

    if not isinstance(embedding, list) or not embedding:
        return None
    for v in embedding:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            return None

    return {
        "text": text,
        "category": category,
        "description": description,
        "embedding": [float(v) for v in embedding],
    }


def iter_entries(
    csv_path: Path | str, max_entries: int = DEFAULT_MAX_ENTRIES
) -> Iterator[Tuple[Optional[Dict[str, Any]], int]]:
    """Yield (entry or None, line number) per data row until max_entries are parsed."""
    if max_entries <= 0:
        raise ValueError(f"max_entries must be a positive integer, got {max_entries}")

    # Embedding cells can be far larger than the csv module's default limit.
    csv.field_size_limit(2**31 - 1)

    parsed = 0
    with open(csv_path, "r", encoding="utf-8", newline="") as infile:
        reader = csv.reader(infile)
        next(reader, None)  # header
        for fields in reader:
            if not any(f.strip() for f in fields):
                continue
            entry = parse_row(fields)
            yield entry, reader.line_num
            if entry is not None:
                parsed += 1
                if parsed >= max_entries:
                    return


def convert(
    csv_path: Path | str,
    max_entries: int = DEFAULT_MAX_ENTRIES,
    *,
    model: str = DEFAULT_MODEL,
) -> Tuple[Dict[str, Any], int]:
    """Read up to max_entries valid rows and build the snapshot document.

    Returns (snapshot, skipped_rows).
    """
    entries: List[Dict[str, Any]] = []
    skipped = 0
    for entry, line_num in iter_entries(csv_path, max_entries):
        if entry is None:
            skipped += 1
            logger.debug("Skipping line %d (unparseable row)", line_num)
            continue
        entries.append(entry)
        if len(entries) % PROGRESS_EVERY == 0:
            logger.info("   ... processed %d entries", len(entries))

    snapshot = build_snapshot(entries, model=model)
    return snapshot, skipped


def build_snapshot(entries: List[Dict[str, Any]], *, model: str = DEFAULT_MODEL) -> Dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "model": model,
        "dimensions": len(entries[0]["embedding"]) if entries else 0,
        "totalEntries": len(entries),
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "entries": entries,
    }


def write_snapshot(snapshot: Dict[str, Any], output_path: Path | str) -> Path:
    path = Path(output_path)
    path.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), encoding="utf-8")
    return path
