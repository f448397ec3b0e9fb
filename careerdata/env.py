import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env() -> None:
    """Load .env from project root if present."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class Settings:
    """
    Resolved file locations and knobs for one pipeline run.

    Input paths follow a fixed layout under ``data_dir``.
    """

    data_dir: Path
    output_dir: Path
    log_dir: Path
    log_level: str = "INFO"
    description_limit: int = 200

    @classmethod
    def from_env(cls, data_dir: Optional[str] = None, output_dir: Optional[str] = None) -> "Settings":
        root = Path(data_dir or os.getenv("CAREERDATA_DATA_DIR", "data"))
        out = output_dir or os.getenv("CAREERDATA_OUTPUT_DIR")
        return cls(
            data_dir=root,
            output_dir=Path(out) if out else root / "output",
            log_dir=Path(os.getenv("CAREERDATA_LOG_DIR", "logs")),
            log_level=os.getenv("CAREERDATA_LOG_LEVEL", "INFO"),
            description_limit=int(os.getenv("CAREERDATA_DESCRIPTION_LIMIT", "200")),
        )

    # Inputs

    @property
    def base_path(self) -> Path:
        return self.data_dir / "sources" / "onet" / "normalized.json"

    @property
    def primary_exposure_path(self) -> Path:
        return self.data_dir / "sources" / "gpts-are-gpts.json"

    @property
    def secondary_exposure_path(self) -> Path:
        return self.data_dir / "sources" / "ai-exposure.json"

    @property
    def growth_path(self) -> Path:
        return self.data_dir / "sources" / "bls" / "normalized.json"

    @property
    def epoch_path(self) -> Path:
        return self.data_dir / "sources" / "epoch" / "normalized.json"

    @property
    def curated_skills_path(self) -> Path:
        return self.data_dir / "processed" / "curated-tech-skills.json"

    @property
    def legacy_risk_path(self) -> Path:
        return self.data_dir / "processed" / "oxford_ai_risk_mapping.json"

    @property
    def media_path(self) -> Path:
        return self.data_dir / "sources" / "videos" / "normalized.json"

    @property
    def narrative_path(self) -> Path:
        return self.data_dir / "inside-career" / "inside-career.json"

    @property
    def manual_path(self) -> Path:
        # A single JSON file wins over the YAML directory when both exist
        json_file = self.data_dir / "manual" / "careers.json"
        if json_file.exists():
            return json_file
        return self.data_dir / "manual" / "careers"

    @property
    def exposure_cache_path(self) -> Path:
        return self.data_dir / "sources" / "exposure" / "normalized.json"

    # Outputs

    @property
    def careers_output(self) -> Path:
        return self.output_dir / "careers.json"

    @property
    def index_output(self) -> Path:
        return self.output_dir / "careers-index.json"
