"""
Batch build: load every dataset, merge, project, write.

All inputs are loaded before any record is merged and both outputs are
written only after every record is done. Counters for the run report come
from ``summarize``, a reduction over the merged records.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from .env import Settings
from .logger import get_logger
from .manual import load_manual_careers
from .merge import MergeContext, MergedOccupation, merge
from .project import project
from .resilience import TIERS
from .sources import load_exposures
from .storage import DatasetError, as_code_map, load_optional, load_required, save_json

logger = get_logger()

OVERLAY_EVENTS = ("curated_skills", "legacy_risk", "video", "inside_look")


def load_base(settings: Settings) -> Dict[str, Any]:
    """
    Load the required base dataset as ``{code: record}``.

    Raises:
        DatasetError: missing, unparsable, or without any records
    """
    data = load_required(settings.base_path, "Base occupation dataset")
    base = as_code_map(data, ("occupations",))
    if not base:
        raise DatasetError(f"Base occupation dataset contains no records: {settings.base_path}")
    logger.info(f"Loaded {len(base)} base occupations")
    return base


def build_context(settings: Settings, fresh: bool = False, today: Optional[str] = None) -> MergeContext:
    """Load the optional datasets into a read-only merge context."""
    exposures = load_exposures(
        settings.primary_exposure_path,
        settings.secondary_exposure_path,
        settings.exposure_cache_path,
        fresh=fresh,
    )
    return MergeContext.build(
        today=today or date.today().isoformat(),
        exposures=exposures,
        projections=as_code_map(load_optional(settings.growth_path, "BLS projections"), ("projections",)),
        epochs=as_code_map(load_optional(settings.epoch_path, "EPOCH scores"), ("scores",)),
        curated_skills=as_code_map(load_optional(settings.curated_skills_path, "Curated tech skills"), ("skills",)),
        legacy_risk=as_code_map(load_optional(settings.legacy_risk_path, "Legacy AI risk mapping"), ("mappings",)),
        media=as_code_map(
            load_optional(settings.media_path, "Career videos"), ("videos",), key_fields=("soc_code",)
        ),
        narrative=as_code_map(
            load_optional(settings.narrative_path, "Inside-career narratives"), ("careers",), key_fields=("soc_code",)
        ),
    )


def _record_key(m: MergedOccupation) -> str:
    return str(m.record.get("onet_code") or m.record.get("slug") or m.record.get("title") or "?")


def summarize(merged: Sequence[MergedOccupation]) -> Dict[str, Any]:
    """Reduce per-record events into run counters."""
    classification_counts = {tier: 0 for tier in TIERS}
    exposure_sources: Dict[str, int] = {}
    overlays = {name: 0 for name in OVERLAY_EVENTS}
    summary: Dict[str, Any] = {
        "total": len(merged),
        "sourced": 0,
        "manual": 0,
        "classified": 0,
        "category_overrides": 0,
        "category_unmapped": [],
        "failed_records": [],
        "zero_compensation": [],
        "manual_mismatches": [],
    }

    for m in merged:
        summary["manual" if m.manual else "sourced"] += 1
        key = _record_key(m)
        failed = False
        for event in m.events:
            if event.startswith("classified:"):
                source = event.split(":")[1]
                exposure_sources[source] = exposure_sources.get(source, 0) + 1
                if event.endswith(":mismatch"):
                    summary["manual_mismatches"].append(key)
            elif event in overlays:
                overlays[event] += 1
            elif event == "category_override":
                summary["category_overrides"] += 1
            elif event == "category_unmapped":
                summary["category_unmapped"].append(key)
            elif event == "quality:zero_compensation":
                summary["zero_compensation"].append(key)
            elif event.startswith("failed:"):
                failed = True
        if failed:
            summary["failed_records"].append(key)

        tier = m.record.get("ai_resilience")
        if tier in classification_counts:
            classification_counts[tier] += 1
            summary["classified"] += 1

    summary["classification_counts"] = classification_counts
    summary["exposure_sources"] = exposure_sources
    summary["overlays"] = overlays
    return summary


def _report_data_quality(summary: Dict[str, Any]) -> None:
    metrics_logger = get_logger()
    for key in summary["zero_compensation"]:
        logger.warning("Career progression timeline has $0 compensation", career=key)
        metrics_logger.record_data_quality_warning()
    for _ in summary["manual_mismatches"]:
        metrics_logger.record_data_quality_warning()
    if summary["failed_records"]:
        logger.warning(
            f"{len(summary['failed_records'])} records had failing merge steps",
            records=summary["failed_records"],
        )


def run_build(
    settings: Settings,
    fresh: bool = False,
    workers: int = 1,
    today: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run the full build and write both output files.

    Returns:
        Run summary (see ``summarize``) plus dataset availability and
        output paths.

    Raises:
        DatasetError: if the base dataset is unusable
    """
    get_logger().reset_run()
    base = load_base(settings)
    ctx = build_context(settings, fresh=fresh, today=today)

    manual, manual_errors = load_manual_careers(settings.manual_path)
    for error in manual_errors:
        logger.warning("Manual career rejected", error=error)

    merged = merge(base, manual, ctx, workers=workers)
    summary = summarize(merged)
    summary["manual_rejected"] = len(manual_errors)
    _report_data_quality(summary)

    full, index = project([m.record for m in merged], settings.description_limit)
    save_json(settings.careers_output, full)
    save_json(settings.index_output, index)
    logger.info(
        "Wrote outputs",
        careers=str(settings.careers_output),
        index=str(settings.index_output),
        records=len(full),
    )

    metrics_logger = get_logger()
    metrics_logger.record_run_summary(summary)
    metrics = metrics_logger.get_metrics()
    summary["datasets_loaded"] = list(metrics["datasets_loaded"])
    summary["datasets_missing"] = list(metrics["datasets_missing"])
    summary["outputs"] = [str(settings.careers_output), str(settings.index_output)]
    metrics_logger.log_metrics_summary()
    return summary


def validate_manual_file(path) -> List[str]:
    """Validation errors for a manual careers file or directory."""
    _, errors = load_manual_careers(path)
    return errors
