"""
Structured logging system for the career data pipeline.

Provides centralized logging with console and file outputs, plus a
metrics dict describing the most recent build (datasets found, records
merged, classification breakdown) for the end-of-run summary.
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for reporting on a pipeline run.
    """

    def __init__(
        self,
        name: str = "careerdata",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: $CAREERDATA_LOG_DIR or logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers

        self.metrics: Dict[str, Any] = self._empty_metrics()

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path(os.getenv("CAREERDATA_LOG_DIR", "logs"))
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"careerdata_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    @staticmethod
    def _empty_metrics() -> Dict[str, Any]:
        return {
            "datasets_loaded": [],
            "datasets_missing": [],
            "records_merged": 0,
            "records_failed": 0,
            "records_classified": 0,
            "classification_counts": {},
            "exposure_sources": {},
            "data_quality_warnings": 0,
        }

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    def set_level(self, level: str):
        """Change the logger and console level; the file keeps everything."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(getattr(logging, level.upper()))

    # Metric tracking methods

    def record_dataset(self, name: str, loaded: bool):
        """Record whether an input dataset was found."""
        key = "datasets_loaded" if loaded else "datasets_missing"
        if name not in self.metrics[key]:
            self.metrics[key].append(name)

    def reset_run(self):
        """Clear per-build metrics so a new build in the same process starts empty."""
        self.metrics = self._empty_metrics()

    def record_data_quality_warning(self):
        """Increment the data-quality warning counter."""
        self.metrics["data_quality_warnings"] += 1

    def record_run_summary(self, summary: Dict[str, Any]):
        """
        Copy the reduced per-run counters into metrics.

        The summary is computed after every record is merged, so counters
        are never touched from inside per-record work.
        """
        self.metrics["records_merged"] = summary.get("total", 0)
        self.metrics["records_failed"] = len(summary.get("failed_records", []))
        self.metrics["records_classified"] = summary.get("classified", 0)
        self.metrics["classification_counts"] = dict(summary.get("classification_counts", {}))
        self.metrics["exposure_sources"] = dict(summary.get("exposure_sources", {}))

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        merged = metrics_copy["records_merged"]
        metrics_copy["classification_rate"] = (
            round(metrics_copy["records_classified"] / merged, 3) if merged else 0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Career Data Build Metrics ===")
        self.info(f"Datasets loaded: {len(metrics['datasets_loaded'])}")
        if metrics["datasets_missing"]:
            self.info(f"Datasets missing: {', '.join(metrics['datasets_missing'])}")
        self.info(
            f"Records: {metrics['records_merged']} merged, "
            f"{metrics['records_classified']} classified "
            f"({metrics['classification_rate'] * 100:.1f}%), "
            f"{metrics['records_failed']} failed"
        )

        if metrics["classification_counts"]:
            self.info("AI Resilience breakdown:")
            for tier, count in metrics["classification_counts"].items():
                self.info(f"  {tier}: {count}")

        if metrics["exposure_sources"]:
            self.info("Exposure sources:")
            for source, count in metrics["exposure_sources"].items():
                self.info(f"  {source}: {count}")

        if metrics["data_quality_warnings"]:
            self.warning(f"Data-quality warnings: {metrics['data_quality_warnings']}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "careerdata",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
