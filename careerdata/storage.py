"""
Flat-file JSON storage for pipeline inputs and outputs.

Inputs are loaded wholesale before any processing starts and outputs are
written wholesale at the end. Only the base occupation dataset is
required; every other dataset degrades to ``None`` when absent.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .logger import get_logger

logger = get_logger()


class DatasetError(Exception):
    """Raised when a required dataset is missing or unusable."""
    pass


def load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def save_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")


def load_optional(path: Path, description: str) -> Optional[Any]:
    """
    Load an optional dataset.

    Returns None (never raises) when the file is absent, unreadable or not
    valid JSON; the caller proceeds with reduced enrichment.
    """
    if not path.exists():
        logger.warning(f"{description} not found, skipping", path=str(path))
        get_logger().record_dataset(description, loaded=False)
        return None
    try:
        data = load_json(path)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        logger.error(f"{description} could not be parsed, skipping", path=str(path), error=str(e))
        get_logger().record_dataset(description, loaded=False)
        return None
    logger.info(f"Loaded {description}", path=str(path))
    get_logger().record_dataset(description, loaded=True)
    return data


def load_required(path: Path, description: str) -> Any:
    """Load a required dataset, raising DatasetError when it is unusable."""
    if not path.exists():
        raise DatasetError(f"{description} is required but was not found: {path}")
    try:
        data = load_json(path)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DatasetError(f"{description} is not valid JSON ({path}): {e}") from e
    except OSError as e:
        raise DatasetError(f"{description} could not be read ({path}): {e}") from e
    logger.info(f"Loaded {description}", path=str(path))
    get_logger().record_dataset(description, loaded=True)
    return data


def as_code_map(
    data: Any,
    wrapper_keys: Iterable[str] = (),
    key_fields: Iterable[str] = ("onet_code", "code"),
) -> Dict[str, Any]:
    """
    Normalize a dataset document into a ``{code: entry}`` mapping.

    Accepts the mapping itself, the mapping wrapped under one of
    ``wrapper_keys`` (e.g. ``{"occupations": {...}}``), or a list of objects
    carrying their code in one of ``key_fields``. Anything else yields {}.
    """
    if data is None:
        return {}
    if isinstance(data, dict):
        for key in wrapper_keys:
            if key in data:
                return as_code_map(data[key], (), key_fields)
        return dict(data)
    if isinstance(data, list):
        key_fields = tuple(key_fields)
        out: Dict[str, Any] = {}
        for entry in data:
            if not isinstance(entry, dict):
                continue
            for field in key_fields:
                code = entry.get(field)
                if isinstance(code, str) and code:
                    out[code] = entry
                    break
        return out
    return {}
