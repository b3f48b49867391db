"""Convert the CSV embeddings export into the JSON dataset snapshot.

Run:
	python scripts/prepare_embeddings.py [max_entries]
	python scripts/prepare_embeddings.py 5000

Paths and the default entry cap come from src/vectorstore/config.yaml (`etl`)
and the constants below.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

# Ensure the repository root is importable when run as a script
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
	sys.path.insert(0, str(REPO_ROOT))

from src.vectorstore.config import CONFIG_FILE_PATH, dataset_path, load_config  # noqa: E402
from src.vectorstore.prepare import DEFAULT_MAX_ENTRIES, DEFAULT_MODEL, convert, write_snapshot  # noqa: E402


# --- Configuration ---
LOG_LEVEL: str = "INFO"
# --- End of Configuration ---


def main(argv: list[str]) -> int:
	logging.basicConfig(
		level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
		format="%(asctime)s - %(levelname)s - %(message)s",
		handlers=[logging.StreamHandler(sys.stdout)],
	)

	cfg = load_config(CONFIG_FILE_PATH)
	etl_cfg = cfg.get("etl") or {}
	csv_path = etl_cfg.get("csv_path", "oted_embeddings.csv")
	output_path = dataset_path(cfg)
	model = (cfg.get("embedding_model") or {}).get("model", DEFAULT_MODEL)

	max_entries = int(etl_cfg.get("max_entries", DEFAULT_MAX_ENTRIES))
	if len(argv) > 1:
		try:
			max_entries = int(argv[1])
		except ValueError:
			max_entries = 0
	if max_entries <= 0:
		logging.error("Invalid max entries argument. Must be a positive number.")
		return 1

	logging.info("Converting first %d entries from %s to JSON...", max_entries, csv_path)
	start = time.perf_counter()
	try:
		snapshot, skipped = convert(csv_path, max_entries, model=model)
	except FileNotFoundError:
		logging.error("CSV export not found: %s", csv_path)
		return 1

	path = write_snapshot(snapshot, output_path)
	elapsed_ms = (time.perf_counter() - start) * 1000
	size_mb = path.stat().st_size / (1024 * 1024)

	logging.info(
		"Converted %d entries (skipped %d) in %.0fms", snapshot["totalEntries"], skipped, elapsed_ms
	)
	logging.info("Output: %s (%.2f MB)", path, size_mb)
	logging.info("Embedding dimensions: %d", snapshot["dimensions"])
	return 0


if __name__ == "__main__":  # pragma: no cover
	raise SystemExit(main(sys.argv))
