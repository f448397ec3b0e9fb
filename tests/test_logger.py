"""
Tests for logger functionality.
"""

import pytest
from pathlib import Path
from careerdata.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["records_merged"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        # Should not raise exceptions
        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Logging with context should include extra data."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Message with context", code="15-1252.00", path=Path("x.json"))
        log_files = list(tmp_path.glob("careerdata_*.log"))
        assert len(log_files) == 1
        assert '"code": "15-1252.00"' in log_files[0].read_text(encoding="utf-8")

    def test_dataset_tracking(self, tmp_path):
        """Datasets are recorded once each."""
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_dataset("EPOCH scores", loaded=True)
        logger.record_dataset("EPOCH scores", loaded=True)
        logger.record_dataset("Career videos", loaded=False)
        assert logger.metrics["datasets_loaded"] == ["EPOCH scores"]
        assert logger.metrics["datasets_missing"] == ["Career videos"]

    def test_run_summary(self, tmp_path):
        """Metrics are copied from the reduced run summary."""
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_run_summary({
            "total": 4,
            "classified": 3,
            "failed_records": ["13-2011.00"],
            "classification_counts": {"AI-Resilient": 2, "In Transition": 1},
            "exposure_sources": {"primary": 2, "manual": 1},
        })
        logger.record_data_quality_warning()

        metrics = logger.get_metrics()
        assert metrics["records_merged"] == 4
        assert metrics["records_failed"] == 1
        assert metrics["classification_rate"] == 0.75
        assert metrics["classification_counts"]["AI-Resilient"] == 2
        assert metrics["data_quality_warnings"] == 1

        # Should not raise
        logger.log_metrics_summary()

    def test_reset_run(self, tmp_path):
        """reset_run clears datasets and counters."""
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_dataset("EPOCH scores", loaded=False)
        logger.record_data_quality_warning()
        logger.reset_run()
        assert logger.metrics["datasets_missing"] == []
        assert logger.metrics["data_quality_warnings"] == 0

    def test_empty_rate(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        assert logger.get_metrics()["classification_rate"] == 0

    def test_set_level(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path)
        logger.set_level("warning")
        assert logger.logger.level == 30


class TestGlobalLogger:
    """Test global logger instance."""

    def test_get_logger_singleton(self):
        """get_logger should return same instance."""
        reset_logger()
        logger1 = get_logger()
        logger2 = get_logger()
        assert logger1 is logger2

    def test_reset_logger(self):
        """reset_logger should clear global instance."""
        logger1 = get_logger()
        reset_logger()
        logger2 = get_logger()
        assert logger1 is not logger2
