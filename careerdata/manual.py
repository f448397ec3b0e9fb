"""
Loader for hand-authored occupations.

Manual careers have no base-dataset code. They are maintained either as a
single JSON document (a list, or ``{"careers": [...]}``) or as a directory
of YAML files, one career per file; files starting with ``_`` are
templates and are skipped.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .logger import get_logger
from .schema import validate_manual_record

logger = get_logger()

LIST_FIELDS = ("tasks", "technology_skills", "abilities", "alternate_titles")

# (level name, level number, years min/typical/max)
PROGRESSION_LEVELS = [
    ("Entry", 1, (0, 1, 2)),
    ("Early Career", 2, (2, 4, 6)),
    ("Mid-Career", 3, (5, 10, 15)),
    ("Experienced", 4, (10, 15, 20)),
    ("Expert", 5, (15, 20, 30)),
]
# last timeline year (inclusive) covered by each level
TIMELINE_YEAR_LIMITS = (2, 5, 12, 17, 20)


def _read_documents(path: Path) -> List[Tuple[str, Any]]:
    """Return (source name, parsed document) pairs."""
    if path.is_dir():
        docs = []
        for file in sorted(path.iterdir()):
            if file.suffix not in (".yaml", ".yml") or file.name.startswith("_"):
                continue
            with file.open("r", encoding="utf-8") as f:
                docs.append((file.name, yaml.safe_load(f)))
        return docs
    with path.open("r", encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if isinstance(data, dict) and "careers" in data:
        data = data["careers"]
    if isinstance(data, list):
        return [(f"{path.name}[{i}]", item) for i, item in enumerate(data)]
    return [(path.name, data)]


def load_manual_careers(path: Path) -> Tuple[List[Dict[str, Any]], List[str]]:
    """
    Load, validate and normalize manual careers.

    Returns:
        Tuple of (careers, errors). Invalid entries are reported in errors
        and left out; a missing path yields ([], []).
    """
    if not path.exists():
        logger.warning("Manual careers not found, skipping", path=str(path))
        get_logger().record_dataset("Manual careers", loaded=False)
        return [], []

    try:
        documents = _read_documents(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Manual careers could not be parsed, skipping", path=str(path), error=str(e))
        get_logger().record_dataset("Manual careers", loaded=False)
        return [], [f"{path.name}: {e}"]

    careers: List[Dict[str, Any]] = []
    errors: List[str] = []
    for source, doc in documents:
        problems = validate_manual_record(doc)
        if problems:
            errors.extend(f"{source}: {p}" for p in problems)
            continue
        careers.append(normalize_manual(doc))

    get_logger().record_dataset("Manual careers", loaded=True)
    logger.info(f"Loaded {len(careers)} manual careers", path=str(path), rejected=len(errors))
    return careers, errors


def normalize_manual(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Fill defaults on a validated manual career; returns a new dict."""
    career = dict(doc)
    career["data_source"] = "manual"
    if not career.get("title") and career.get("name"):
        career["title"] = career["name"]
    for field in LIST_FIELDS:
        career[field] = list(career.get(field) or [])
    if not career.get("career_progression"):
        wages = career.get("wages") or {}
        career["career_progression"] = generate_career_progression(wages.get("annual") or {})
    return career


def generate_career_progression(annual: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Build a 5-level progression and a year 0-20 timeline from wage percentiles.

    10th/25th/median/75th/90th percentiles map to Entry through Expert.
    Needs at least pct_10, median and pct_90; missing pct_25 and pct_75 are
    interpolated.
    """
    pct_10 = annual.get("pct_10")
    median = annual.get("median")
    pct_90 = annual.get("pct_90")
    if not pct_10 or not median or not pct_90:
        return None

    early = annual.get("pct_25") or round(pct_10 + (median - pct_10) * 0.4)
    experienced = annual.get("pct_75") or round(median + (pct_90 - median) * 0.5)
    pay_by_level = [pct_10, early, median, experienced, pct_90]

    levels = []
    for (name, number, (y_min, y_typ, y_max)), pay in zip(PROGRESSION_LEVELS, pay_by_level):
        levels.append({
            "level_name": name,
            "level_number": number,
            "years_experience": {"min": y_min, "typical": y_typ, "max": y_max},
            "compensation": {
                "total": {"min": round(pay * 0.9), "median": pay, "max": round(pay * 1.1)},
                "breakdown": None,
            },
        })

    timeline = []
    for year in range(21):
        idx = next(i for i, limit in enumerate(TIMELINE_YEAR_LIMITS) if year <= limit)
        timeline.append({
            "year": year,
            "level_name": PROGRESSION_LEVELS[idx][0],
            "expected_compensation": pay_by_level[idx],
        })

    return {
        "source": "manual_percentiles",
        "source_title": None,
        "match_confidence": "approximate",
        "levels": levels,
        "timeline": timeline,
    }
