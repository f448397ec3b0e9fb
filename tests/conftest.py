"""
Pytest configuration and shared fixtures.
"""

import os
import tempfile

# Keep log files out of the working tree; must run before careerdata imports
os.environ.setdefault("CAREERDATA_LOG_DIR", tempfile.mkdtemp(prefix="careerdata-logs-"))

import pytest
import json
from pathlib import Path
from typing import Dict, Any

from careerdata.env import Settings
from careerdata.logger import reset_logger


TODAY = "2025-01-15"


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Each test starts with empty run metrics."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def software_dev() -> Dict[str, Any]:
    """Base record for Software Developers."""
    return {
        "onet_code": "15-1252.00",
        "soc_code": "15-1252",
        "title": "Software Developers",
        "slug": "software-developers",
        "category": "technology",
        "description": "Research, design, and develop computer and network software or specialized utility programs. " * 4,
        "technology_skills": ["Java", "Python"],
        "wages": {"annual": {"pct_10": 77000, "median": 132270, "pct_90": 208620}},
        "education": {
            "typical_entry_education": "Bachelor's degree",
            "education_duration": {"min_years": 4, "typical_years": 4, "max_years": 6},
        },
    }


@pytest.fixture
def cashier() -> Dict[str, Any]:
    """Base record for Cashiers."""
    return {
        "onet_code": "41-2011.00",
        "title": "Cashiers",
        "category": "sales",
        "ai_risk": 8,
        "wages": {"annual": {"median": 29720}},
    }


@pytest.fixture
def nurse() -> Dict[str, Any]:
    """Base record for Registered Nurses, with a stale category."""
    return {
        "onet_code": "29-1141.00",
        "soc_code": "29-1141",
        "title": "Registered Nurses",
        "slug": "registered-nurses",
        "category": "healthcare",
    }


@pytest.fixture
def base_records(software_dev, cashier, nurse) -> Dict[str, Dict[str, Any]]:
    return {
        software_dev["onet_code"]: software_dev,
        cashier["onet_code"]: cashier,
        nurse["onet_code"]: nurse,
    }


@pytest.fixture
def manual_career() -> Dict[str, Any]:
    """Valid hand-authored career with scoring points."""
    return {
        "slug": "wind-turbine-installer",
        "name": "Wind Turbine Installer",
        "category": "installation-repair",
        "soc_code": "49-9081",
        "wages": {"annual": {"pct_10": 45000, "median": 61000, "pct_90": 90000}},
        "ai_assessment": {
            "scoring": {"exposurePoints": 2, "growthPoints": 2, "humanAdvantagePoints": 1},
            "classification": "AI-Resilient",
        },
        "ai_resilience": "AI-Resilient",
    }


@pytest.fixture
def data_dir(tmp_path, base_records, manual_career) -> Path:
    """A complete data directory with every dataset present."""
    root = tmp_path / "data"
    write_json(root / "sources" / "onet" / "normalized.json", {"occupations": base_records})
    write_json(root / "sources" / "gpts-are-gpts.json", {
        "15-1252.00": {"gpt4_beta": 0.65},
        "29-1141.00": {"gpt4_beta": 0.12},
    })
    write_json(root / "sources" / "ai-exposure.json", {
        "41-2011.00": {"aioe_score": 0.5},
    })
    write_json(root / "sources" / "bls" / "normalized.json", {"projections": {
        "15-1252.00": {"percentChange": 17.9},
        "29-1141.00": {"percentChange": 6.0},
        "41-2011.00": {"percentChange": -10.0},
    }})
    write_json(root / "sources" / "epoch" / "normalized.json", {"scores": {
        "15-1252.00": {"epochScores": {"empathy": 2, "presence": 2, "opinion": 3, "creativity": 4, "hope": 3}},
        "29-1141.00": {"epochScores": {"empathy": 5, "presence": 5, "opinion": 4, "creativity": 3, "hope": 4}},
        "41-2011.00": {"epochScores": {"empathy": 2, "presence": 3, "opinion": 1, "creativity": 1, "hope": 2}},
    }})
    write_json(root / "processed" / "curated-tech-skills.json", {"skills": {
        "15-1252.00": ["Python", "Git", "Kubernetes"],
    }})
    write_json(root / "processed" / "oxford_ai_risk_mapping.json", {"mappings": [
        {"onet_code": "29-1141.00", "ai_risk": 2, "ai_risk_label": "low",
         "oxford_probability": 0.009, "match_type": "exact"},
    ]})
    write_json(root / "sources" / "videos" / "normalized.json", {"videos": {
        "29-1141": {"youtubeId": "abc123", "title": "Registered Nurses"},
    }})
    write_json(root / "inside-career" / "inside-career.json", {"careers": {
        "15-1252": {"content": "A day in the life...", "generated_at": "2024-12-01"},
    }})
    write_json(root / "manual" / "careers.json", [manual_career])
    return root


@pytest.fixture
def settings(data_dir, tmp_path) -> Settings:
    return Settings(data_dir=data_dir, output_dir=tmp_path / "out", log_dir=tmp_path / "logs")
