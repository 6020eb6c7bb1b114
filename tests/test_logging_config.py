"""Tests for structured analysis logging."""

import json
import logging
import sys

from codeflow.logging_config import (
    ANALYSIS_LOGGER_NAME,
    AnalysisLogFormatter,
    configure_analysis_logging,
    get_analysis_logger,
    summarize_analysis_logs,
)


def _record(msg="ANALYSIS_COMPLETE", level=logging.INFO, **extra):
    record = logging.LogRecord(ANALYSIS_LOGGER_NAME, level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestAnalysisLogFormatter:
    """Test JSON formatting of analysis events."""

    def test_structured_fields(self):
        record = _record(
            event="analysis_complete",
            source_file="app.js",
            language="javascript",
            mode="syntax_tree",
            cyclomatic=4,
            duration_ms=1.5,
        )
        entry = json.loads(AnalysisLogFormatter().format(record))
        assert entry["message"] == "ANALYSIS_COMPLETE"
        assert entry["level"] == "INFO"
        assert entry["event"] == "analysis_complete"
        assert entry["source_file"] == "app.js"
        assert entry["mode"] == "syntax_tree"
        assert entry["cyclomatic"] == 4
        assert entry["duration_ms"] == 1.5
        assert "analyzer" not in entry

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record("ANALYZER_FAULT", logging.WARNING, event="analyzer_fault", analyzer="security")
            record.exc_info = sys.exc_info()
        entry = json.loads(AnalysisLogFormatter().format(record))
        assert entry["analyzer"] == "security"
        assert "RuntimeError: boom" in entry["exception"]


class TestConfigureAnalysisLogging:
    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "analysis.log"
        configure_analysis_logging(log_file=str(log_file), log_level="INFO", enable_console=False)

        logger = get_analysis_logger()
        assert logger.propagate is False
        logger.info("INPUT_REJECTED", extra={"event": "input_rejected", "source_file": "x.js", "size": 0})
        for handler in logger.handlers:
            handler.flush()

        [line] = log_file.read_text(encoding="utf-8").splitlines()
        assert json.loads(line)["event"] == "input_rejected"

    def test_level_filters(self, tmp_path):
        log_file = tmp_path / "analysis.log"
        configure_analysis_logging(log_file=str(log_file), log_level="WARNING", enable_console=False)
        get_analysis_logger().info("ANALYSIS_COMPLETE", extra={"event": "analysis_complete"})
        for handler in get_analysis_logger().handlers:
            handler.flush()
        assert log_file.read_text(encoding="utf-8") == ""

    def test_reconfigure_replaces_handlers(self):
        configure_analysis_logging(enable_console=True)
        configure_analysis_logging(enable_console=True)
        assert len(get_analysis_logger().handlers) == 1


class TestSummarizeAnalysisLogs:
    """Test tallying events from a log file."""

    def test_counts(self, tmp_path):
        log_file = tmp_path / "analysis.log"
        entries = [
            {"event": "analysis_complete", "mode": "syntax_tree", "language": "javascript"},
            {"event": "analysis_complete", "mode": "text_patterns", "language": "javascript"},
            {"event": "analysis_complete", "mode": "text_only", "language": "python"},
            {"event": "parse_fallback"},
            {"event": "analyzer_fault", "analyzer": "security"},
            {"event": "analyzer_fault", "analyzer": "security"},
            {"event": "input_rejected"},
        ]
        lines = [json.dumps(e) for e in entries] + ["not json"]
        log_file.write_text("\n".join(lines) + "\n", encoding="utf-8")

        stats = summarize_analysis_logs(str(log_file))
        assert stats["total_analyses"] == 3
        assert stats["modes"] == {"syntax_tree": 1, "text_patterns": 1, "text_only": 1}
        assert stats["languages"] == {"javascript": 2, "python": 1}
        assert stats["parse_fallbacks"] == 1
        assert stats["analyzer_faults"] == 2
        assert stats["faulty_analyzers"] == {"security": 2}
        assert stats["rejected_inputs"] == 1

    def test_missing_file(self, tmp_path):
        stats = summarize_analysis_logs(str(tmp_path / "missing.log"))
        assert stats["total_analyses"] == 0
