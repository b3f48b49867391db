import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

load_dotenv(override=True)

CONFIG_FILE_PATH = Path(__file__).parent / "config.yaml"
DEFAULT_DATASET_PATH = "dictionary-embeddings.json"


# The function requires a path. No magic defaults.
def load_config(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a given YAML file path.

    Args:
        config_path: Explicit path to the configuration file.

    Returns:
        Parsed configuration dictionary.

    Raises:
        FileNotFoundError: If the configuration file is not found.
        ValueError: If there is an error parsing the YAML file.
    """
    path = Path(config_path)

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Configuration file not found: {path}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file '{path}': {e}") from e

    return data or {}


def dataset_path(cfg: Dict[str, Any] | None = None) -> str:
    """Resolve the snapshot path: DATASET_PATH env > config.yaml `dataset.path` > default."""
    env_path = os.getenv("DATASET_PATH", "").strip()
    if env_path:
        return env_path
    dataset_cfg = (cfg or {}).get("dataset") or {}
    return str(dataset_cfg.get("path") or DEFAULT_DATASET_PATH)


def embedding_timeout(cfg: Dict[str, Any] | None = None) -> float | None:
    """Seconds to wait on the embedding provider per request; None disables the limit."""
    raw = os.getenv("EMBEDDING_TIMEOUT_SEC", "").strip()
    if not raw:
        raw = (cfg or {}).get("embedding_timeout_sec")
    if raw in (None, ""):
        return None
    value = float(raw)
    return value if value > 0 else None
