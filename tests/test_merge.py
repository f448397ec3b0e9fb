"""
Tests for the record merge engine.
"""

import copy

import pytest

from careerdata.merge import (
    FALLBACK_RATIONALE_SUFFIX,
    METHODOLOGY_FALLBACK,
    METHODOLOGY_FULL,
    TRANSFORMS,
    ManualOccupation,
    MergeContext,
    SourcedOccupation,
    apply_curated_skills,
    apply_legacy_risk,
    apply_media,
    apply_narrative,
    merge,
    merge_one,
)
from careerdata.manual import normalize_manual
from conftest import TODAY


def full_context(**overrides):
    lookups = dict(
        exposures={
            "15-1252.00": {"exposureScore": 0.65, "source": "primary"},
            "29-1141.00": {"exposureScore": 0.12, "source": "primary"},
            "41-2011.00": {"exposureScore": 0.2, "source": "secondary"},
        },
        projections={
            "15-1252.00": {"percentChange": 17.9},
            "29-1141.00": {"percentChange": 6.0},
            "41-2011.00": {"percentChange": -10.0},
        },
        epochs={
            "15-1252.00": {"epochScores": {"empathy": 2, "presence": 2, "opinion": 3, "creativity": 4, "hope": 3}},
            "29-1141.00": {"epochScores": {"empathy": 5, "presence": 5, "opinion": 4, "creativity": 3, "hope": 4}},
            "41-2011.00": {"epochScores": {"empathy": 2, "presence": 3, "opinion": 1, "creativity": 1, "hope": 2}},
        },
        curated_skills={"15-1252.00": ["Python", "Git", "Kubernetes"]},
        legacy_risk={"29-1141.00": {"ai_risk": 2, "ai_risk_label": "low", "oxford_probability": 0.009, "match_type": "exact"}},
        media={"29-1141": {"youtubeId": "abc123"}},
        narrative={"15-1252": {"content": "A day in the life..."}},
    )
    lookups.update(overrides)
    return MergeContext.build(today=TODAY, **lookups)


def by_code(merged):
    return {m.record.get("onet_code") or m.record["slug"]: m for m in merged}


class TestClassificationStep:
    """Classification from resolved inputs."""

    def test_full_inputs(self, software_dev):
        m = merge_one(SourcedOccupation("15-1252.00", software_dev), full_context())
        a = m.record["ai_assessment"]
        assert m.record["ai_resilience"] == "AI-Augmented"
        assert m.record["ai_resilience_tier"] == 2
        assert a["scoring"] == {"exposurePoints": 0, "growthPoints": 2, "humanAdvantagePoints": 1, "totalScore": 3}
        assert a["methodology"] == METHODOLOGY_FULL
        assert a["classificationRationale"] == "Score 3/6: high AI task exposure, growing employment outlook"
        assert a["lastUpdated"] == TODAY
        assert a["aiExposure"]["source"] == "primary"
        assert "classified:primary" in m.events

    def test_all_inputs_missing(self, software_dev):
        """No exposure, growth or EPOCH: emitted without classification."""
        software_dev["ai_resilience"] = "AI-Resilient"
        ctx = full_context(exposures={}, projections={}, epochs={})
        m = merge_one(SourcedOccupation("15-1252.00", software_dev), ctx)
        assert "ai_assessment" not in m.record
        assert "ai_resilience" not in m.record
        assert m.record["title"] == "Software Developers"
        assert m.record["data_completeness"]["has_classification"] is False

    def test_fallback_uses_legacy_estimate(self, cashier):
        """Only growth present: exposure comes from legacy risk 8 -> 0.8."""
        ctx = full_context(exposures={}, epochs={})
        m = merge_one(SourcedOccupation("41-2011.00", cashier), ctx)
        a = m.record["ai_assessment"]
        assert a["aiExposure"] == {"score": pytest.approx(0.8), "label": "High", "source": "editorial-estimate"}
        assert a["humanAdvantage"]["epochSum"] == 15
        assert a["methodology"] == METHODOLOGY_FALLBACK
        assert a["classificationRationale"].endswith(FALLBACK_RATIONALE_SUFFIX)
        # 0 + 0 + 1
        assert m.record["ai_resilience"] == "High Disruption Risk"

    def test_fallback_growth_default(self, software_dev):
        ctx = full_context(projections={})
        m = merge_one(SourcedOccupation("15-1252.00", software_dev), ctx)
        a = m.record["ai_assessment"]
        assert a["jobGrowth"]["percentChange"] == 2.0
        assert a["jobGrowth"]["label"] == "Stable"

    def test_secondary_source(self, cashier):
        m = merge_one(SourcedOccupation("41-2011.00", cashier), full_context())
        assert m.record["ai_resilience"] == "In Transition"
        assert "classified:secondary" in m.events


class TestOverlays:
    """Overlay precedence."""

    def test_curated_skills_replace(self, software_dev):
        occ, event = apply_curated_skills(SourcedOccupation("15-1252.00", software_dev), full_context())
        assert occ.record["technology_skills"] == ["Python", "Git", "Kubernetes"]
        assert event == "curated_skills"
        assert software_dev["technology_skills"] == ["Java", "Python"]

    def test_legacy_risk_fills_in(self, nurse):
        occ, _ = apply_legacy_risk(SourcedOccupation("29-1141.00", nurse), full_context())
        risk = occ.record["ai_risk"]
        assert risk["score"] == 2
        assert risk["confidence"] == "high"
        assert risk["oxford_source"]["probability"] == pytest.approx(0.009)
        assert risk["last_assessed"] == TODAY

    def test_legacy_risk_never_overwrites(self, nurse):
        nurse["ai_risk"] = {"score": 9, "label": "high"}
        occ, event = apply_legacy_risk(SourcedOccupation("29-1141.00", nurse), full_context())
        assert occ.record["ai_risk"] == {"score": 9, "label": "high"}
        assert event is None

    def test_media_found(self, nurse):
        occ, event = apply_media(SourcedOccupation("29-1141.00", nurse), full_context())
        assert occ.record["video"] == {"youtubeId": "abc123"}
        assert event == "video"

    def test_media_absent_is_explicit_null(self, software_dev):
        occ, event = apply_media(SourcedOccupation("15-1252.00", software_dev), full_context())
        assert "video" in occ.record
        assert occ.record["video"] is None
        assert event is None

    def test_media_absent_replaces_stale_value(self, software_dev):
        """A miss nulls out a video carried on the base record."""
        software_dev["video"] = {"youtubeId": "stale"}
        occ, _ = apply_media(SourcedOccupation("15-1252.00", software_dev), full_context())
        assert occ.record["video"] is None

    def test_narrative_absent_replaces_stale_value(self, nurse):
        nurse["inside_look"] = {"content": "stale"}
        occ, _ = apply_narrative(SourcedOccupation("29-1141.00", nurse), full_context())
        assert occ.record["inside_look"] is None

    def test_unmapped_category_kept(self):
        """An unknown major group keeps the base category."""
        record = {"title": "Mystery", "category": "science"}
        m = merge_one(SourcedOccupation("99-1234.00", record), full_context())
        assert m.record["category"] == "science"
        assert "category_unmapped" in m.events

    def test_category_recomputed(self, nurse):
        m = merge_one(SourcedOccupation("29-1141.00", nurse), full_context())
        assert m.record["category"] == "healthcare-clinical"
        assert "category_override" in m.events


class TestManualOccupations:
    """Manual careers bypass the base-dataset steps."""

    def test_bypass_and_recompute(self, manual_career):
        occ = ManualOccupation(normalize_manual(manual_career))
        m = merge_one(occ, full_context())
        assert m.manual
        assert m.record["category"] == "installation-repair"
        assert m.record["ai_resilience"] == "AI-Resilient"
        assert m.record["ai_resilience_tier"] == 1
        assert m.record["ai_assessment"]["scoring"]["totalScore"] == 5
        assert m.record["data_source"] == "manual"
        assert "classified:manual" in m.events

    def test_authored_tier_disagrees(self, manual_career):
        manual_career["ai_resilience"] = "High Disruption Risk"
        m = merge_one(ManualOccupation(normalize_manual(manual_career)), full_context())
        assert m.record["ai_resilience"] == "AI-Resilient"
        assert "classified:manual:mismatch" in m.events


class TestMerge:
    """Whole-batch behavior."""

    def test_sorted_by_title(self, base_records, manual_career):
        merged = merge(base_records, [normalize_manual(manual_career)], full_context())
        titles = [m.record["title"] for m in merged]
        assert titles == ["Cashiers", "Registered Nurses", "Software Developers", "Wind Turbine Installer"]

    def test_completeness(self, base_records):
        merged = by_code(merge(base_records, [], full_context()))
        nurse = merged["29-1141.00"].record["data_completeness"]
        assert nurse["has_video"] is True
        assert nurse["has_legacy_risk"] is True
        assert nurse["completeness_score"] == 50
        dev = merged["15-1252.00"].record["data_completeness"]
        assert dev["has_inside_look"] is True
        assert dev["completeness_score"] == 50

    def test_idempotent(self, base_records):
        """Same inputs and audit date produce identical output."""
        first = [m.record for m in merge(copy.deepcopy(base_records), [], full_context())]
        second = [m.record for m in merge(copy.deepcopy(base_records), [], full_context())]
        assert first == second

    def test_inputs_not_mutated(self, base_records):
        snapshot = copy.deepcopy(base_records)
        merge(base_records, [], full_context())
        assert base_records == snapshot

    def test_parallel_matches_serial(self, base_records, manual_career):
        manual = [normalize_manual(manual_career)]
        serial = merge(base_records, manual, full_context())
        parallel = merge(base_records, manual, full_context(), workers=4)
        assert [m.record for m in serial] == [m.record for m in parallel]

    def test_bad_record_does_not_fail_batch(self, base_records):
        ctx = full_context(exposures={"15-1252.00": {"exposureScore": "n/a", "source": "bogus"}})
        merged = by_code(merge(base_records, [], ctx))
        dev = merged["15-1252.00"]
        assert "failed:classification" in dev.events
        assert "ai_resilience" not in dev.record
        assert dev.record["data_completeness"]["has_classification"] is False
        assert merged["29-1141.00"].record["ai_resilience"] == "AI-Resilient"

    def test_failed_classification_drops_stale_tier(self, software_dev):
        """A record whose classification fails is emitted unclassified."""
        software_dev["ai_resilience"] = "AI-Resilient"
        software_dev["ai_resilience_tier"] = 1
        software_dev["ai_assessment"] = {"classification": "AI-Resilient"}
        ctx = full_context(epochs={"15-1252.00": {"epochScores": {"empathy": 9}}})
        merged = by_code(merge({"15-1252.00": software_dev}, [], ctx))
        dev = merged["15-1252.00"]
        assert "failed:classification" in dev.events
        for field in ("ai_resilience", "ai_resilience_tier", "ai_assessment"):
            assert field not in dev.record
        assert dev.record["data_completeness"]["has_classification"] is False

    def test_non_object_record(self, base_records):
        base_records["13-2011.00"] = "garbage"
        merged = by_code(merge(base_records, [], full_context()))
        assert merged["13-2011.00"].record["category"] == "business-finance"

    def test_empty_base_rejected(self):
        with pytest.raises(ValueError):
            merge({}, [], full_context())

    def test_transform_order(self):
        names = [name for name, _ in TRANSFORMS]
        assert names.index("legacy_risk") < names.index("classification")
        assert names.index("clear_classification") == names.index("classification") - 1
        assert names[-1] == "completeness"
