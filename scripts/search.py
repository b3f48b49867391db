"""Term suggestion script using SearchService against the local snapshot.

Configuration via constants below (no CLI args). Run:
	python scripts/search.py

Environment:
	OPENAI_API_KEY  (embedding)
	DATASET_PATH    (default from src/vectorstore/config.yaml)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

# Ensure the repository root is importable when run as a script
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
	sys.path.insert(0, str(REPO_ROOT))

from src.search import SearchService  # noqa: E402
from src.vectorstore.config import CONFIG_FILE_PATH, dataset_path, load_config  # noqa: E402
from src.vectorstore.data_store import DatasetStore  # noqa: E402
from src.vectorstore.embeddings import Embedder  # noqa: E402
from src.vectorstore.schemas import SearchItem, format_search_item  # noqa: E402


# ---------------------------------------------------------------------------
# Configuration Constants
# ---------------------------------------------------------------------------
QUERY_TEXT: str = "a feeling of great happiness"
TOP_K: int = 5
LOG_LEVEL: str = "INFO"


def search(query: str, top_k: int = TOP_K) -> List[SearchItem]:
	"""Suggest entries for `query` and log an aggregated multi-line block with results."""
	logger = logging.getLogger(__name__)

	cfg = load_config(CONFIG_FILE_PATH)
	store = DatasetStore()
	store.load(dataset_path(cfg))
	service = SearchService(store=store, embedder=Embedder(config=cfg))

	result = service.suggest(query, top_k)
	header = f"Returned K={top_k} results in {result.elapsed_ms}ms. \nQuery: {result.query!r} \n"
	lines: List[str] = [header]
	for idx, item in enumerate(result.results, start=1):
		lines.append(f"{idx}. {format_search_item(item)}")
	logger.info("\n".join(lines))
	return result.results


def main() -> int:
	logging.basicConfig(
		level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s - %(message)s",
	)
	try:
		search(QUERY_TEXT, TOP_K)
		return 0
	except Exception as e:  # pragma: no cover
		logging.exception("Search failed: %s", e)
		return 1


if __name__ == "__main__":  # pragma: no cover
	raise SystemExit(main())
