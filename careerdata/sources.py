"""
Per-dataset value extraction and the derived exposure cache.

Each upstream dataset names its fields differently (raw downloads vs.
normalized files). The helpers here pull the one value the pipeline needs
from an entry and return None when it is absent or unusable.
"""

import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .logger import get_logger
from .resilience import resolve_exposure
from .storage import as_code_map, load_json, load_optional, save_json

logger = get_logger()

PRIMARY_EXPOSURE_FIELDS = ("gpt4_beta", "llm_exposure_score", "exposureScore")
SECONDARY_EXPOSURE_FIELDS = ("aioe_score", "exposureScore")
GROWTH_FIELDS = ("percentChange", "percent_change")


def to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _first_number(entry: Any, fields: Iterable[str]) -> Optional[float]:
    if not isinstance(entry, Mapping):
        return to_number(entry)
    for field in fields:
        number = to_number(entry.get(field))
        if number is not None:
            return number
    return None


def primary_exposure(entry: Any) -> Optional[float]:
    return _first_number(entry, PRIMARY_EXPOSURE_FIELDS)


def secondary_exposure(entry: Any) -> Optional[float]:
    return _first_number(entry, SECONDARY_EXPOSURE_FIELDS)


def growth_percent(entry: Any) -> Optional[float]:
    return _first_number(entry, GROWTH_FIELDS)


def epoch_mapping(entry: Any) -> Optional[Mapping[str, Any]]:
    """Return the raw EPOCH sub-score dict, or None when the entry has none."""
    if not isinstance(entry, Mapping):
        return None
    scores = entry.get("epochScores", entry.get("epoch_scores"))
    if isinstance(scores, Mapping):
        return scores
    if any(k in entry for k in ("empathy", "presence", "opinion", "creativity", "hope")):
        return entry
    return None


def legacy_risk_score(record: Mapping[str, Any]) -> Optional[float]:
    """Score from the record's ai_risk, which may be a dict or a bare number."""
    risk = record.get("ai_risk")
    if isinstance(risk, Mapping):
        return to_number(risk.get("score"))
    return to_number(risk)


# Derived exposure cache


def build_exposure_map(
    primary: Mapping[str, Any],
    secondary: Mapping[str, Any],
) -> Dict[str, Dict[str, Any]]:
    """
    Resolve exposure for every code covered by either source.

    Codes without a usable value in either source are left out; they fall
    through to the editorial estimate at merge time.
    """
    out: Dict[str, Dict[str, Any]] = {}
    for code in sorted(set(primary) | set(secondary)):
        p = primary_exposure(primary.get(code))
        s = secondary_exposure(secondary.get(code))
        if p is None and s is None:
            continue
        resolution = resolve_exposure(p, s, editorial_estimate=0.0)
        out[code] = {"exposureScore": resolution.value, "source": resolution.source}
    return out


def _present_inputs(inputs: Mapping[str, Path]) -> List[str]:
    return sorted(role for role, path in inputs.items() if path.exists())


def _cache_is_fresh(cache_path: Path, cached: Any, inputs: Mapping[str, Path]) -> bool:
    """
    The cache is fresh when it was built from exactly the inputs present
    now and is newer than each of them.
    """
    existing = [p for p in inputs.values() if p.exists()]
    if not existing or not isinstance(cached, Mapping):
        return False
    metadata = cached.get("metadata")
    if not isinstance(metadata, Mapping) or metadata.get("inputs") != _present_inputs(inputs):
        return False
    cache_mtime = cache_path.stat().st_mtime
    return all(p.stat().st_mtime <= cache_mtime for p in existing)


def load_exposures(
    primary_path: Path,
    secondary_path: Path,
    cache_path: Path,
    fresh: bool = False,
) -> Dict[str, Dict[str, Any]]:
    """
    Return the resolved ``{code: {exposureScore, source}}`` map.

    Reuses the cache when it was built from the same inputs and is newer
    than each of them, unless ``fresh``; otherwise rebuilds from the raw
    sources and rewrites the cache.
    """
    inputs = {"primary": primary_path, "secondary": secondary_path}
    if not fresh and cache_path.exists():
        try:
            cached = load_json(cache_path)
        except (ValueError, OSError) as e:
            logger.warning("Exposure cache unreadable, rebuilding", path=str(cache_path), error=str(e))
            cached = None
        if _cache_is_fresh(cache_path, cached, inputs):
            exposures = as_code_map(cached, ("exposures",))
            logger.info("Using cached exposure data", path=str(cache_path), entries=len(exposures))
            get_logger().record_dataset("AI exposure cache", loaded=True)
            return exposures

    primary = as_code_map(load_optional(primary_path, "Primary AI exposure"))
    secondary = as_code_map(load_optional(secondary_path, "Secondary AI exposure"))
    exposures = build_exposure_map(primary, secondary)

    if primary or secondary:
        counts: Dict[str, int] = {}
        for entry in exposures.values():
            counts[entry["source"]] = counts.get(entry["source"], 0) + 1
        metadata = {"inputs": _present_inputs(inputs), "total_entries": len(exposures), "by_source": counts}
        save_json(cache_path, {"metadata": metadata, "exposures": exposures})
        logger.info("Wrote exposure cache", path=str(cache_path), entries=len(exposures))
    return exposures
