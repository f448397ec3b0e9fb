from typing import Any, List, Mapping

from .categories import is_category_id
from .normalize import is_valid_code
from .resilience import EPOCH_FIELDS, EPOCH_MAX, EPOCH_MIN, TIERS

OPTIONAL_STR_FIELDS = [
    "soc_code",
    "slug",
    "category",
    "subcategory",
    "description",
]
OPTIONAL_LIST_FIELDS = [
    "tasks",
    "technology_skills",
    "abilities",
    "alternate_titles",
]
SCORING_FIELDS = ["exposurePoints", "growthPoints", "humanAdvantagePoints"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _check_common(data: Mapping[str, Any], errors: List[str]) -> None:
    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")
    for f in OPTIONAL_LIST_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], list):
            errors.append(f"Field '{f}' must be a list if provided")


def validate_epoch(scores: Any) -> List[str]:
    """Each EPOCH sub-score, when given, must be a number in [1, 5]."""
    if not isinstance(scores, Mapping):
        return ["EPOCH scores must be an object"]
    errors: List[str] = []
    for f in EPOCH_FIELDS:
        v = scores.get(f)
        if v is None:
            continue
        if not _is_number(v):
            errors.append(f"EPOCH '{f}' must be a number")
        elif not EPOCH_MIN <= v <= EPOCH_MAX:
            errors.append(f"EPOCH '{f}' must be within [{EPOCH_MIN}, {EPOCH_MAX}]")
    return errors


def validate_base_record(code: str, data: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    if not isinstance(data, Mapping):
        return [f"Record for '{code}' must be an object"]
    errors: List[str] = []

    if not is_valid_code(code):
        errors.append(f"Invalid occupation code: {code!r}")
    record_code = data.get("onet_code")
    if record_code is not None and record_code != code:
        errors.append(f"Field 'onet_code' ({record_code!r}) does not match its key ({code!r})")
    if not _is_non_empty_str(data.get("title")):
        errors.append("Field 'title' must be a non-empty string")

    _check_common(data, errors)
    return errors


def validate_manual_record(data: Any) -> List[str]:
    """
    Validate a hand-authored occupation. Empty list means valid.
    """
    if not isinstance(data, Mapping):
        return ["Manual career must be an object"]
    errors: List[str] = []

    if not _is_non_empty_str(data.get("slug")):
        errors.append("Missing required field: slug")
    if not (_is_non_empty_str(data.get("title")) or _is_non_empty_str(data.get("name"))):
        errors.append("Missing required field: title (or name)")
    category = data.get("category")
    if not _is_non_empty_str(category):
        errors.append("Missing required field: category")
    elif not is_category_id(category):
        errors.append(f"Unknown category: {category!r}")
    if data.get("onet_code") is not None and not is_valid_code(data["onet_code"]):
        errors.append(f"Invalid occupation code: {data['onet_code']!r}")

    _check_common(data, errors)

    assessment = data.get("ai_assessment")
    if assessment is not None:
        errors.extend(_validate_assessment(assessment))

    resilience = data.get("ai_resilience")
    if resilience is not None and resilience not in TIERS:
        errors.append(f"Field 'ai_resilience' must be one of {', '.join(TIERS)}")
    return errors


def _validate_assessment(assessment: Any) -> List[str]:
    if not isinstance(assessment, Mapping):
        return ["Field 'ai_assessment' must be an object"]
    errors: List[str] = []
    scoring = assessment.get("scoring")
    if scoring is not None:
        if not isinstance(scoring, Mapping):
            errors.append("Field 'ai_assessment.scoring' must be an object")
        else:
            for f in SCORING_FIELDS:
                if scoring.get(f) not in (0, 1, 2) or isinstance(scoring.get(f), bool):
                    errors.append(f"Scoring '{f}' must be 0, 1 or 2")
    advantage = assessment.get("humanAdvantage")
    if isinstance(advantage, Mapping) and advantage.get("epochScores") is not None:
        errors.extend(validate_epoch(advantage["epochScores"]))
    classification = assessment.get("classification")
    if classification is not None and classification not in TIERS:
        errors.append(f"Classification must be one of {', '.join(TIERS)}")
    return errors

