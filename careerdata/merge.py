"""
Record merge engine.

Builds one merged record per occupation from the base dataset (or a
hand-authored record) plus the optional overlays. Precedence is the order
of ``TRANSFORMS``: each step is a pure function that takes an occupation
and the read-only ``MergeContext`` and returns a new occupation, never
mutating its input.

Each step also returns an optional event tag ("skills", "media",
"failed:legacy_risk", ...). Run counters are reduced from these tags
after every record is merged.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .categories import get_category_safe
from .logger import get_logger
from .normalize import display_title, is_valid_code, onet_to_soc, secondary_key, slugify, title_sort_key
from .resilience import (
    EXPOSURE_SOURCES,
    TIERS,
    EpochScores,
    ExposureResolution,
    assess,
    classify,
    legacy_exposure_estimate,
    resolve_exposure,
    tier_number,
)
from .schema import validate_base_record
from .sources import epoch_mapping, growth_percent, legacy_risk_score, to_number

logger = get_logger()

METHODOLOGY_FULL = "v2.0 - GPTs/BLS/EPOCH Additive"
METHODOLOGY_FALLBACK = "v2.0-fallback - EPOCH/Legacy"
FALLBACK_RATIONALE_SUFFIX = " (estimated from legacy data)"
FALLBACK_GROWTH_PERCENT = 2.0
GROWTH_SOURCE = "BLS Employment Projections 2024-2034"
LEGACY_RISK_PAPER = 'Frey & Osborne (2013) "The Future of Employment"'

CLASSIFICATION_FIELDS = ("ai_assessment", "ai_resilience", "ai_resilience_tier")
RECOVERABLE_ERRORS = (ValueError, TypeError, KeyError, AttributeError)


# Occupation variants


@dataclass(frozen=True)
class SourcedOccupation:
    """An occupation backed by a base-dataset record."""
    code: str
    record: Mapping[str, Any]


@dataclass(frozen=True)
class ManualOccupation:
    """A hand-authored occupation with no base-dataset code."""
    record: Mapping[str, Any]


Occupation = Union[SourcedOccupation, ManualOccupation]


def overlay_key(occ: Occupation) -> Optional[str]:
    """Occupation-code key for the code-keyed overlays."""
    if isinstance(occ, SourcedOccupation):
        return occ.code
    code = occ.record.get("onet_code")
    if is_valid_code(code):
        return code
    return occ.record.get("slug")


def _with(occ: Occupation, **changes: Any) -> Occupation:
    record = dict(occ.record)
    record.update(changes)
    return replace(occ, record=record)


def _without(occ: Occupation, keys: Sequence[str]) -> Occupation:
    record = {k: v for k, v in occ.record.items() if k not in keys}
    return replace(occ, record=record)


# Context


def _frozen(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class MergeContext:
    """
    Read-only lookups built once per run from the optional datasets.

    ``exposures`` holds resolved values keyed by occupation code
    (``{"exposureScore": float, "source": str}``). ``media`` and
    ``narrative`` are keyed by SOC code. ``today`` is the audit date stamped
    on generated assessments.
    """

    today: str
    exposures: Mapping[str, Any] = field(default_factory=dict)
    projections: Mapping[str, Any] = field(default_factory=dict)
    epochs: Mapping[str, Any] = field(default_factory=dict)
    curated_skills: Mapping[str, Any] = field(default_factory=dict)
    legacy_risk: Mapping[str, Any] = field(default_factory=dict)
    media: Mapping[str, Any] = field(default_factory=dict)
    narrative: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def build(cls, today: str, **lookups: Any) -> "MergeContext":
        return cls(today=today, **{k: _frozen(v) for k, v in lookups.items()})


# Transforms, in precedence order

Step = Tuple[Occupation, Optional[str]]


def apply_base_identity(occ: Occupation, ctx: MergeContext) -> Step:
    """Fill identity fields the base record may lack."""
    if isinstance(occ, ManualOccupation):
        return occ, None
    record = occ.record
    changes: Dict[str, Any] = {"onet_code": occ.code}
    if not record.get("slug"):
        changes["slug"] = slugify(display_title(record))
    if not record.get("soc_code") and is_valid_code(occ.code):
        changes["soc_code"] = onet_to_soc(occ.code)
    if not record.get("data_source"):
        changes["data_source"] = "onet"
    return _with(occ, **changes), None


def apply_category_override(occ: Occupation, ctx: MergeContext) -> Step:
    """Recompute category from the occupation code."""
    if isinstance(occ, ManualOccupation):
        return occ, None
    category = get_category_safe(occ.code)
    if category is None:
        logger.warning("Category could not be computed, keeping base category", code=occ.code)
        return occ, "category_unmapped"
    if category == occ.record.get("category"):
        return occ, None
    logger.debug(
        "Category override",
        code=occ.code,
        title=occ.record.get("title"),
        old=occ.record.get("category"),
        new=category,
    )
    return _with(occ, category=category), "category_override"


def apply_curated_skills(occ: Occupation, ctx: MergeContext) -> Step:
    """Curated technology skills replace the base list outright."""
    skills = ctx.curated_skills.get(overlay_key(occ))
    if not isinstance(skills, list):
        return occ, None
    return _with(occ, technology_skills=list(skills)), "curated_skills"


def _legacy_risk_structure(mapping: Mapping[str, Any], today: str) -> Dict[str, Any]:
    probability = to_number(mapping.get("oxford_probability"))
    match_type = mapping.get("match_type")
    if probability is not None:
        summary = f"Based on Frey & Osborne (2013) probability of {probability * 100:.1f}%"
    else:
        summary = "Based on category median from Frey & Osborne (2013) data"
    increasing = []
    decreasing = []
    if probability is not None and probability > 0.5:
        increasing = ["Routine cognitive or manual tasks", "Structured work environment"]
    if probability is not None and probability < 0.5:
        decreasing = ["Complex decision-making", "Human interaction required", "Creative problem-solving"]
    return {
        "score": mapping.get("ai_risk"),
        "label": mapping.get("ai_risk_label"),
        "confidence": "high" if match_type in ("exact", "parent_soc") else "medium",
        "rationale": {
            "summary": summary,
            "factors_increasing_risk": increasing,
            "factors_decreasing_risk": decreasing,
        },
        "last_assessed": today,
        "assessor": "legacy_mapping",
        "oxford_source": {
            "probability": probability,
            "match_type": match_type,
            "paper": LEGACY_RISK_PAPER,
        },
    }


def apply_legacy_risk(occ: Occupation, ctx: MergeContext) -> Step:
    """Legacy 1-10 risk only fills in; a populated ai_risk structure is kept."""
    existing = occ.record.get("ai_risk")
    if isinstance(existing, Mapping) and existing:
        return occ, None
    mapping = ctx.legacy_risk.get(overlay_key(occ))
    if not isinstance(mapping, Mapping):
        return occ, None
    return _with(occ, ai_risk=_legacy_risk_structure(mapping, ctx.today)), "legacy_risk"


def _soc_overlay(occ: Occupation, lookup: Mapping[str, Any], field_name: str) -> Step:
    key = secondary_key(occ.record)
    found = lookup.get(key) if key else None
    if found is not None:
        return _with(occ, **{field_name: found}), field_name
    # explicit None marks "checked, not found"
    return _with(occ, **{field_name: None}), None


def apply_media(occ: Occupation, ctx: MergeContext) -> Step:
    return _soc_overlay(occ, ctx.media, "video")


def apply_narrative(occ: Occupation, ctx: MergeContext) -> Step:
    return _soc_overlay(occ, ctx.narrative, "inside_look")


def _resolved_exposure(entry: Any) -> Optional[ExposureResolution]:
    if entry is None:
        return None
    if not isinstance(entry, Mapping) or entry.get("source") not in EXPOSURE_SOURCES:
        raise ValueError(f"malformed exposure entry: {entry!r}")
    value = to_number(entry.get("exposureScore"))
    if value is None:
        raise ValueError(f"exposure entry has no score: {entry!r}")
    return ExposureResolution(value=value, source=entry["source"])


def _assessment_block(a, growth_source: str, methodology: str, rationale_suffix: str, today: str) -> Dict[str, Any]:
    return {
        "aiExposure": {
            "score": a.exposure.value,
            "label": a.exposure_score.label,
            "source": a.exposure.source,
        },
        "jobGrowth": {
            "label": a.growth_score.label,
            "percentChange": a.growth_percent,
            "source": growth_source,
        },
        "humanAdvantage": {
            "category": a.advantage_score.label,
            "epochScores": a.epoch.as_dict(),
            "epochSum": a.epoch.total,
        },
        "scoring": {
            "exposurePoints": a.exposure_score.points,
            "growthPoints": a.growth_score.points,
            "humanAdvantagePoints": a.advantage_score.points,
            "totalScore": a.result.total_score,
        },
        "classification": a.result.tier,
        "classificationRationale": a.result.rationale + rationale_suffix,
        "lastUpdated": today,
        "methodology": methodology,
    }


def _classify_sourced(occ: SourcedOccupation, ctx: MergeContext) -> Step:
    exposure = _resolved_exposure(ctx.exposures.get(occ.code))
    growth = growth_percent(ctx.projections.get(occ.code))
    epoch_raw = epoch_mapping(ctx.epochs.get(occ.code))

    if exposure is None and growth is None and epoch_raw is None:
        return occ, None

    complete = exposure is not None and growth is not None and epoch_raw is not None
    if exposure is None:
        estimate = legacy_exposure_estimate(legacy_risk_score(occ.record))
        exposure = resolve_exposure(None, None, estimate)

    a = assess(
        exposure,
        growth if growth is not None else FALLBACK_GROWTH_PERCENT,
        EpochScores.from_mapping(epoch_raw),
    )
    block = _assessment_block(
        a,
        growth_source=GROWTH_SOURCE if growth is not None else "Estimated",
        methodology=METHODOLOGY_FULL if complete else METHODOLOGY_FALLBACK,
        rationale_suffix="" if complete else FALLBACK_RATIONALE_SUFFIX,
        today=ctx.today,
    )
    occ = _with(
        occ,
        ai_assessment=block,
        ai_resilience=a.result.tier,
        ai_resilience_tier=tier_number(a.result.tier),
    )
    return occ, f"classified:{exposure.source}"


def _classify_manual(occ: ManualOccupation, ctx: MergeContext) -> Step:
    record = occ.record
    assessment = record.get("ai_assessment")
    scoring = assessment.get("scoring") if isinstance(assessment, Mapping) else None
    authored = record.get("ai_resilience")

    if not isinstance(scoring, Mapping):
        if authored in TIERS:
            return _with(occ, ai_resilience_tier=tier_number(authored)), "classified:manual"
        return occ, None

    result = classify(
        scoring["exposurePoints"],
        scoring["growthPoints"],
        scoring["humanAdvantagePoints"],
    )
    event = "classified:manual"
    authored = authored or assessment.get("classification")
    if authored is not None and authored != result.tier:
        logger.warning(
            "Manual career classification disagrees with its scoring",
            slug=record.get("slug"),
            authored=authored,
            computed=result.tier,
            total_score=result.total_score,
        )
        event = "classified:manual:mismatch"

    block = dict(assessment)
    block["scoring"] = {**scoring, "totalScore": result.total_score}
    block["classification"] = result.tier
    block.setdefault("classificationRationale", result.rationale)
    occ = _with(
        occ,
        ai_assessment=block,
        ai_resilience=result.tier,
        ai_resilience_tier=tier_number(result.tier),
    )
    return occ, event


def clear_classification(occ: Occupation, ctx: MergeContext) -> Step:
    """Drop upstream classification fields from sourced records before recomputing."""
    if isinstance(occ, ManualOccupation):
        return occ, None
    return _without(occ, CLASSIFICATION_FIELDS), None


def apply_classification(occ: Occupation, ctx: MergeContext) -> Step:
    if isinstance(occ, ManualOccupation):
        return _classify_manual(occ, ctx)
    return _classify_sourced(occ, ctx)


def _has_zero_compensation(record: Mapping[str, Any]) -> bool:
    progression = record.get("career_progression")
    if not isinstance(progression, Mapping):
        return False
    timeline = progression.get("timeline") or []
    return any(
        isinstance(entry, Mapping) and entry.get("expected_compensation") == 0
        for entry in timeline
    )


def apply_completeness(occ: Occupation, ctx: MergeContext) -> Step:
    record = occ.record
    checks = {
        "has_wages": bool(record.get("wages")),
        "has_classification": bool(record.get("ai_resilience")),
        "has_legacy_risk": bool(record.get("ai_risk")),
        "has_progression": bool(record.get("career_progression")),
    }
    completeness = dict(record.get("data_completeness") or {})
    completeness.update(checks)
    completeness["has_video"] = record.get("video") is not None
    completeness["has_inside_look"] = record.get("inside_look") is not None
    completeness["completeness_score"] = 25 * sum(checks.values())
    event = "quality:zero_compensation" if _has_zero_compensation(record) else None
    return _with(occ, data_completeness=completeness), event


TRANSFORMS: List[Tuple[str, Callable[[Occupation, MergeContext], Step]]] = [
    ("base", apply_base_identity),
    ("category", apply_category_override),
    ("curated_skills", apply_curated_skills),
    ("legacy_risk", apply_legacy_risk),
    ("media", apply_media),
    ("narrative", apply_narrative),
    ("clear_classification", clear_classification),
    # after legacy_risk: the editorial exposure estimate reads ai_risk
    ("classification", apply_classification),
    ("completeness", apply_completeness),
]


# Engine


@dataclass(frozen=True)
class MergedOccupation:
    record: Dict[str, Any]
    manual: bool
    events: Tuple[str, ...]


def merge_one(occ: Occupation, ctx: MergeContext) -> MergedOccupation:
    """
    Run every transform over one occupation.

    A transform that fails leaves the occupation as it was before that
    step; the failure is recorded as a "failed:<step>" event and the
    remaining steps still run.
    """
    events: List[str] = []
    for name, transform in TRANSFORMS:
        try:
            occ, event = transform(occ, ctx)
        except RECOVERABLE_ERRORS as e:
            logger.warning(
                f"Merge step '{name}' failed",
                key=overlay_key(occ),
                title=occ.record.get("title"),
                error=str(e),
            )
            event = f"failed:{name}"
        if event:
            events.append(event)
    return MergedOccupation(
        record=dict(occ.record),
        manual=isinstance(occ, ManualOccupation),
        events=tuple(events),
    )


def build_occupations(
    base_records: Mapping[str, Any],
    manual_records: Sequence[Mapping[str, Any]] = (),
) -> List[Occupation]:
    """Wrap base and manual records in their variants, base first."""
    occupations: List[Occupation] = []
    for code, record in base_records.items():
        problems = validate_base_record(code, record)
        if problems:
            logger.warning("Base record failed validation", code=code, errors=problems)
        if not isinstance(record, Mapping):
            record = {"onet_code": code}
        occupations.append(SourcedOccupation(code=code, record=dict(record)))
    for record in manual_records:
        occupations.append(ManualOccupation(record=dict(record)))
    return occupations


def merge(
    base_records: Mapping[str, Any],
    manual_records: Sequence[Mapping[str, Any]],
    ctx: MergeContext,
    workers: int = 1,
) -> List[MergedOccupation]:
    """
    Merge every occupation and return them sorted by display title.

    Occupations are independent, so ``workers`` > 1 merges them on a thread
    pool; results are identical either way.

    Raises:
        ValueError: if ``base_records`` is empty
    """
    if not base_records:
        raise ValueError("base dataset contains no occupation records")

    occupations = build_occupations(base_records, manual_records)
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            merged = list(pool.map(lambda o: merge_one(o, ctx), occupations))
    else:
        merged = [merge_one(o, ctx) for o in occupations]

    merged.sort(key=lambda m: title_sort_key(m.record))
    return merged
