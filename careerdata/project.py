"""
Output projection.

The full output is the merged records as-is; the index is a fixed,
reduced field set per record for list views. Nothing here reads files or
the clock, and merged records are never modified.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .normalize import display_title
from .sources import to_number

DEFAULT_DESCRIPTION_LIMIT = 200
DEFAULT_TYPICAL_YEARS = 2
DEFAULT_EDUCATION = "High school diploma"
DEFAULT_LEGACY_RISK = 5
DEFAULT_LEGACY_RISK_LABEL = "medium"

# (upper bound exclusive, label)
TRAINING_TIME_BUCKETS = [
    (0.5, "<6mo"),
    (2, "6-24mo"),
    (4, "2-4yr"),
]
TRAINING_TIME_MAX_LABEL = "4+yr"

# education keys that may carry the years triple, in lookup order
TRAINING_YEARS_KEYS = ("education_duration", "time_to_job_ready", "training_years")


def training_time_category(typical_years: float) -> str:
    for upper, label in TRAINING_TIME_BUCKETS:
        if typical_years < upper:
            return label
    return TRAINING_TIME_MAX_LABEL


def _years_triple(duration: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(duration, Mapping):
        return None

    def pick(*keys: str) -> Any:
        for key in keys:
            if duration.get(key) is not None:
                return duration[key]
        return None

    triple = {
        "min": pick("min_years", "min"),
        "typical": pick("typical_years", "typical"),
        "max": pick("max_years", "max"),
    }
    if all(v is None for v in triple.values()):
        return None
    return triple


def training_years(record: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Years-of-training triple from the record's education block, if any."""
    education = record.get("education")
    if not isinstance(education, Mapping):
        return None
    for key in TRAINING_YEARS_KEYS:
        triple = _years_triple(education.get(key))
        if triple is not None:
            return triple
    return None


def _median_pay(record: Mapping[str, Any]) -> float:
    wages = record.get("wages")
    annual = wages.get("annual") if isinstance(wages, Mapping) else None
    median = to_number(annual.get("median")) if isinstance(annual, Mapping) else None
    if median is None:
        return 0
    return int(median) if median.is_integer() else median


def _legacy_risk(record: Mapping[str, Any]) -> Tuple[Any, Any]:
    risk = record.get("ai_risk")
    if isinstance(risk, Mapping):
        return risk.get("score") or DEFAULT_LEGACY_RISK, risk.get("label") or DEFAULT_LEGACY_RISK_LABEL
    if risk:
        return risk, record.get("ai_risk_label") or DEFAULT_LEGACY_RISK_LABEL
    return DEFAULT_LEGACY_RISK, DEFAULT_LEGACY_RISK_LABEL


def project_index_record(record: Mapping[str, Any], description_limit: int = DEFAULT_DESCRIPTION_LIMIT) -> Dict[str, Any]:
    years = training_years(record)
    typical = to_number(years.get("typical")) if years else None
    if typical is None:
        typical = DEFAULT_TYPICAL_YEARS

    education = record.get("education")
    typical_education = None
    if isinstance(education, Mapping):
        typical_education = education.get("typical_entry_education")

    risk_score, risk_label = _legacy_risk(record)
    description = record.get("description")

    return {
        "title": display_title(record),
        "slug": record.get("slug"),
        "category": record.get("category"),
        "subcategory": record.get("subcategory"),
        "median_pay": _median_pay(record),
        "training_time": training_time_category(typical),
        "training_years": years,
        "typical_education": typical_education or DEFAULT_EDUCATION,
        "ai_risk": risk_score,
        "ai_risk_label": risk_label,
        "ai_resilience": record.get("ai_resilience"),
        "ai_resilience_tier": record.get("ai_resilience_tier"),
        "data_source": record.get("data_source") or "onet",
        "description": description[:description_limit] if isinstance(description, str) else "",
    }


def project(
    records: Sequence[Mapping[str, Any]],
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
) -> Tuple[List[Mapping[str, Any]], List[Dict[str, Any]]]:
    """Return (full set, index set), both in the input order."""
    full = list(records)
    index = [project_index_record(r, description_limit) for r in full]
    return full, index
