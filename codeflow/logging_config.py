"""
Logging configuration for analysis runs.

This module provides structured (JSON) logging of analysis events: completed
analyses, parse fallbacks, analyzer faults, and rejected inputs.
"""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Any

ANALYSIS_LOGGER_NAME = "codeflow.analysis_events"


class AnalysisLogFormatter(logging.Formatter):
    """Custom formatter for analysis event logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log records with structured data."""
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "event"):
            log_entry["event"] = record.event

        # Input identification
        for field in ["source_file", "language", "size"]:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        # Outcome fields
        for field in ["mode", "analyzer", "attempts", "cyclomatic", "security_score", "duration_ms"]:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if hasattr(record, "error"):
            log_entry["error"] = record.error

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def configure_analysis_logging(
    log_file: str | None = None,
    log_level: str = "INFO",
    enable_console: bool = True,
) -> None:
    """
    Configure logging for analysis events.

    Args:
        log_file: Path to log file for analysis events (optional)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_console: Whether to also log to console
    """
    logger = logging.getLogger(ANALYSIS_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.propagate = False

    logger.handlers.clear()

    formatter = AnalysisLogFormatter()

    if log_file:
        # Hourly rotation, one week of history
        file_handler = TimedRotatingFileHandler(
            log_file,
            when='H',
            interval=1,
            backupCount=168,
            encoding='utf-8',
            utc=False
        )
        file_handler.suffix = "%Y%m%d_%H%M%S.log"
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


def get_analysis_logger() -> logging.Logger:
    """Get the configured analysis events logger."""
    return logging.getLogger(ANALYSIS_LOGGER_NAME)


def summarize_analysis_logs(log_file: str) -> dict[str, Any]:
    """
    Tally analysis events recorded in a JSON log file.

    Args:
        log_file: Path to the log file

    Returns:
        Dictionary with event counts
    """
    stats: dict[str, Any] = {
        "total_analyses": 0,
        "parse_fallbacks": 0,
        "analyzer_faults": 0,
        "rejected_inputs": 0,
        "modes": {},
        "languages": {},
        "faulty_analyzers": {},
    }

    try:
        with open(log_file, encoding="utf-8") as f:
            for line in f:
                try:
                    entry = json.loads(line.strip())
                except json.JSONDecodeError:
                    continue

                event = entry.get("event")
                if event == "analysis_complete":
                    stats["total_analyses"] += 1
                    mode = entry.get("mode", "unknown")
                    language = entry.get("language", "unknown")
                    stats["modes"][mode] = stats["modes"].get(mode, 0) + 1
                    stats["languages"][language] = stats["languages"].get(language, 0) + 1
                elif event == "parse_fallback":
                    stats["parse_fallbacks"] += 1
                elif event == "analyzer_fault":
                    stats["analyzer_faults"] += 1
                    analyzer = entry.get("analyzer", "unknown")
                    stats["faulty_analyzers"][analyzer] = stats["faulty_analyzers"].get(analyzer, 0) + 1
                elif event == "input_rejected":
                    stats["rejected_inputs"] += 1

    except FileNotFoundError:
        pass

    return stats
