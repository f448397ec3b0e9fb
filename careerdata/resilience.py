"""
AI Resilience scoring (v2.0, additive).

Responsibilities:
- Resolve one canonical AI task exposure value from competing sources.
- Score exposure, job growth and human advantage (EPOCH) on a 0-2 scale.
- Sum the three scores and map the total (0-6) to one of four tiers,
  with a deterministic rationale string.

Non-Responsibilities:
- No file access.
- No knowledge of occupation records or overlays.

Invariant:
Given identical inputs, every function here returns an identical result.
Nothing in this module reads the clock.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

# Exposure sources, in fallback order
SOURCE_PRIMARY = "primary"
SOURCE_SECONDARY = "secondary"
SOURCE_EDITORIAL = "editorial-estimate"
EXPOSURE_SOURCES = (SOURCE_PRIMARY, SOURCE_SECONDARY, SOURCE_EDITORIAL)

# Calibration constants, kept as-is
SECONDARY_EXPOSURE_SCALE = 2.5
LEGACY_RISK_SCALE = 10.0
DEFAULT_LEGACY_RISK = 5

# Tiers, most resilient first
AI_RESILIENT = "AI-Resilient"
AI_AUGMENTED = "AI-Augmented"
IN_TRANSITION = "In Transition"
HIGH_DISRUPTION_RISK = "High Disruption Risk"
TIERS = (AI_RESILIENT, AI_AUGMENTED, IN_TRANSITION, HIGH_DISRUPTION_RISK)

MAX_TOTAL_SCORE = 6

EPOCH_FIELDS = ("empathy", "presence", "opinion", "creativity", "hope")
EPOCH_DEFAULT = 3
EPOCH_MIN = 1
EPOCH_MAX = 5

EXPOSURE_PHRASES = {2: "low AI task exposure", 0: "high AI task exposure"}
GROWTH_PHRASES = {2: "growing employment outlook", 0: "declining employment outlook"}
ADVANTAGE_PHRASES = {2: "strong human advantage", 0: "weak human advantage"}
BALANCED_PHRASE = "balanced factors with no dimension at an extreme"


@dataclass(frozen=True)
class ExposureResolution:
    value: float
    source: str


@dataclass(frozen=True)
class DimensionScore:
    points: int
    label: str


@dataclass(frozen=True)
class ClassificationResult:
    total_score: int
    tier: str
    rationale: str


@dataclass(frozen=True)
class EpochScores:
    """Five 1-5 human advantage sub-scores."""

    empathy: int
    presence: int
    opinion: int
    creativity: int
    hope: int

    def __post_init__(self):
        for name in EPOCH_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"EPOCH {name} must be a number, got {value!r}")
            if not EPOCH_MIN <= value <= EPOCH_MAX:
                raise ValueError(f"EPOCH {name} must be within [{EPOCH_MIN}, {EPOCH_MAX}], got {value}")

    @classmethod
    def from_mapping(cls, scores: Optional[Mapping[str, Any]]) -> "EpochScores":
        """Build from a dict; missing, null or zero sub-scores default to 3."""
        scores = scores or {}
        values = {}
        for name in EPOCH_FIELDS:
            value = scores.get(name)
            values[name] = EPOCH_DEFAULT if value in (None, 0) else value
        return cls(**values)

    @property
    def total(self) -> int:
        return sum(getattr(self, name) for name in EPOCH_FIELDS)

    def as_dict(self) -> dict:
        return {name: getattr(self, name) for name in EPOCH_FIELDS}


def legacy_exposure_estimate(legacy_risk_score: Optional[float]) -> float:
    """Editorial exposure estimate from a 1-10 legacy risk score (default 5)."""
    score = legacy_risk_score if legacy_risk_score else DEFAULT_LEGACY_RISK
    return score / LEGACY_RISK_SCALE


def resolve_exposure(
    primary: Optional[float],
    secondary: Optional[float],
    editorial_estimate: float,
) -> ExposureResolution:
    """
    Pick the canonical exposure value, normalized to [0, 1].

    Primary wins whenever present. The secondary source runs on a wider
    scale and is divided by 2.5. With neither, the caller's editorial
    estimate is used. Every result is clamped to [0, 1].
    """
    if primary is not None:
        value = max(min(primary, 1.0), 0.0)
        return ExposureResolution(value=value, source=SOURCE_PRIMARY)
    if secondary is not None:
        value = max(min(secondary / SECONDARY_EXPOSURE_SCALE, 1.0), 0.0)
        return ExposureResolution(value=value, source=SOURCE_SECONDARY)
    value = max(min(editorial_estimate, 1.0), 0.0)
    return ExposureResolution(value=value, source=SOURCE_EDITORIAL)


def score_exposure(beta: float) -> DimensionScore:
    if beta < 0.25:
        return DimensionScore(2, "Low")
    if beta <= 0.50:
        return DimensionScore(1, "Medium")
    return DimensionScore(0, "High")


def score_growth(percent_change: float) -> DimensionScore:
    if percent_change > 5:
        return DimensionScore(2, "Growing")
    if percent_change >= 0:
        return DimensionScore(1, "Stable")
    return DimensionScore(0, "Declining")


def score_human_advantage(epoch_sum: float) -> DimensionScore:
    if epoch_sum >= 20:
        return DimensionScore(2, "Strong")
    if epoch_sum >= 12:
        return DimensionScore(1, "Moderate")
    return DimensionScore(0, "Weak")


def tier_for_score(total_score: int) -> str:
    if not 0 <= total_score <= MAX_TOTAL_SCORE:
        raise ValueError(f"total score must be within [0, {MAX_TOTAL_SCORE}], got {total_score}")
    if total_score >= 5:
        return AI_RESILIENT
    if total_score >= 3:
        return AI_AUGMENTED
    if total_score == 2:
        return IN_TRANSITION
    return HIGH_DISRUPTION_RISK


def build_rationale(exposure_points: int, growth_points: int, advantage_points: int) -> str:
    total = exposure_points + growth_points + advantage_points
    phrases = []
    for table, points in (
        (EXPOSURE_PHRASES, exposure_points),
        (GROWTH_PHRASES, growth_points),
        (ADVANTAGE_PHRASES, advantage_points),
    ):
        # Medium / Stable / Moderate contribute nothing
        if points in table:
            phrases.append(table[points])
    body = ", ".join(phrases) if phrases else BALANCED_PHRASE
    return f"Score {total}/{MAX_TOTAL_SCORE}: {body}"


def classify(exposure_points: int, growth_points: int, advantage_points: int) -> ClassificationResult:
    """
    Sum the three dimension scores and map the total to a tier.

    Raises:
        ValueError: if any input is outside {0, 1, 2}
    """
    for name, points in (
        ("exposure", exposure_points),
        ("growth", growth_points),
        ("human advantage", advantage_points),
    ):
        if points not in (0, 1, 2):
            raise ValueError(f"{name} points must be 0, 1 or 2, got {points!r}")

    total = exposure_points + growth_points + advantage_points
    return ClassificationResult(
        total_score=total,
        tier=tier_for_score(total),
        rationale=build_rationale(exposure_points, growth_points, advantage_points),
    )


def tier_number(tier: str) -> int:
    """1 = AI-Resilient ... 4 = High Disruption Risk."""
    return TIERS.index(tier) + 1


@dataclass(frozen=True)
class Assessment:
    exposure: ExposureResolution
    exposure_score: DimensionScore
    growth_percent: float
    growth_score: DimensionScore
    epoch: EpochScores
    advantage_score: DimensionScore
    result: ClassificationResult


def assess(exposure: ExposureResolution, growth_percent: float, epoch: EpochScores) -> Assessment:
    """Score all three dimensions and classify."""
    exposure_score = score_exposure(exposure.value)
    growth_score = score_growth(growth_percent)
    advantage_score = score_human_advantage(epoch.total)
    return Assessment(
        exposure=exposure,
        exposure_score=exposure_score,
        growth_percent=growth_percent,
        growth_score=growth_score,
        epoch=epoch,
        advantage_score=advantage_score,
        result=classify(exposure_score.points, growth_score.points, advantage_score.points),
    )
