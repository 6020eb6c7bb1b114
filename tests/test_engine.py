"""Tests for the analysis orchestrator."""

import json
import logging

import pytest

from codeflow.analysis import dependencies
from codeflow.analysis.engine import CodeAnalysisEngine, analyze
from codeflow.analysis.models import AnalysisMode, AnalysisReport, SecurityIssueType, Severity
from codeflow.core.exceptions import InvalidInputError, SourceTooLargeError
from codeflow.logging_config import ANALYSIS_LOGGER_NAME

SAMPLE_SOURCE = """\
import AWS from 'aws-sdk';
const db = require('./db');

// Load a user record
export async function loadUser(id) {
  if (!id) {
    return null;
  }
  const res = await fetch(`/api/users/${id}`, { method: 'GET' });
  return res.json();
}
"""


def _events(caplog, event):
    return [r for r in caplog.records if getattr(r, "event", None) == event]


# =============================================================================
# Full reports
# =============================================================================


class TestAnalyze:
    """Test complete reports for parseable input."""

    def test_report_sections(self, engine):
        report = engine.analyze(SAMPLE_SOURCE, filename="user.js")
        assert isinstance(report, AnalysisReport)
        assert report.filename == "user.js"
        assert report.language == "javascript"
        assert report.mode == AnalysisMode.SYNTAX_TREE
        assert report.complexity.cyclomatic == 2
        assert report.dependencies.imports == ["aws-sdk", "./db"]
        assert report.dependencies.exports == ["loadUser"]
        assert [c.provider for c in report.cloud_services] == ["AWS"]
        assert report.dependencies.api_calls[0].endpoint == "template_literal"
        assert report.metrics.comment_lines == 1
        assert report.syntax_tree is not None

    def test_idempotent(self, engine):
        """Two calls on the same text serialize identically."""
        first = json.dumps(engine.analyze(SAMPLE_SOURCE, "user.js").to_dict(), sort_keys=True)
        second = json.dumps(engine.analyze(SAMPLE_SOURCE, "user.js").to_dict(), sort_keys=True)
        assert first == second

    def test_serialization_excludes_tree(self, engine):
        report = engine.analyze("const a = 1;", "a.js")
        data = report.to_dict()
        assert "syntax_tree" not in data
        json.dumps(data)

    def test_serialization_with_tree(self, engine):
        data = engine.analyze("const a = 1;", "a.js").to_dict(include_tree=True)
        assert data["syntax_tree"]["root"]["kind"] == "program"
        json.dumps(data)

    def test_if_raises_complexity_only(self, engine):
        """Adding one if raises complexity by one and leaves the score alone."""
        base = "function f(a) { eval(a); return a; }"
        more = "function f(a) { eval(a); if (a) {} return a; }"
        before = engine.analyze(base, "f.js")
        after = engine.analyze(more, "f.js")
        assert after.complexity.cyclomatic == before.complexity.cyclomatic + 1
        assert after.security.score == before.security.score

    def test_scenario_function(self, engine):
        report = engine.analyze("function f(x) { if (x) { return 1; } else { return 2; } }")
        assert report.complexity.cyclomatic == 2
        [record] = report.complexity.functions
        assert (record.name, record.complexity, record.parameters) == ("f", 2, ["x"])
        assert record.return_type != "void"

    def test_scenario_eval(self, engine):
        report = engine.analyze('eval("alert(1)")')
        [finding] = report.security.findings
        assert finding.type == SecurityIssueType.EVAL_USAGE
        assert finding.severity == Severity.CRITICAL
        assert report.security.score == 3.0

    def test_import_aggregation(self, engine):
        report = engine.analyze("import { a } from 'x'; const { b } = require('y');")
        assert report.dependencies.imports == ["x", "y"]

    @pytest.mark.parametrize("evals", [0, 1, 2, 3, 5])
    def test_score_bounds(self, engine, evals):
        code = "el.innerHTML = v;\n" + "eval(x);\n" * evals
        score = engine.analyze(code).security.score
        assert 0.0 <= score <= 5.0
        assert score == max(0.0, 4.5 - 2.0 * evals)

    def test_out_of_range_escape_still_reports(self, engine):
        report = engine.analyze('const s = "\\u{FFFFFFFFFFFFFFFFFFFF}";', filename="a.js")
        assert report.mode == AnalysisMode.SYNTAX_TREE
        assert [v.name for v in report.dependencies.variables] == ["s"]

    def test_deeply_parenthesized_initializer(self, engine):
        """Deep nesting does not cost the rest of the dependency report."""
        code = "import x from 'y';\nconst v = " + "(" * 3000 + "1" + ")" * 3000 + ";"
        report = engine.analyze(code, filename="deep.js")
        assert report.mode == AnalysisMode.SYNTAX_TREE
        assert report.dependencies.imports == ["y"]

    def test_module_level_analyze(self):
        assert analyze("let a = 1;", filename="a.ts").language == "typescript"


# =============================================================================
# Language resolution
# =============================================================================


class TestLanguageResolution:
    """Test tag handling and detection."""

    def test_tag_aliases(self, engine):
        assert engine.analyze("const a = 1;", language="ts").language == "typescript"
        assert engine.analyze("const a = 1;", language="JSX").language == "javascript"

    def test_detect_from_extension(self, engine):
        report = engine.analyze("interface A { x: number }", filename="types.ts")
        assert report.language == "typescript"
        assert report.mode == AnalysisMode.SYNTAX_TREE

    def test_tsx_file(self, engine):
        report = engine.analyze("const App = () => <div>hi</div>;", filename="App.tsx")
        assert report.mode == AnalysisMode.SYNTAX_TREE
        assert report.syntax_tree.grammar == "tsx"

    def test_non_grammar_language_is_text_only(self, engine):
        """Other languages still get text metrics, with empty analyzer sections."""
        source = "def main():\n    # comment\n    return 1\n"
        report = engine.analyze(source, filename="main.py")
        assert report.language == "python"
        assert report.mode == AnalysisMode.TEXT_ONLY
        assert report.metrics.total_lines == 4
        assert report.metrics.code_lines == 3
        assert report.complexity.functions == []
        assert report.security.findings == []
        assert report.security.score == 5.0
        assert report.dependencies.imports == []
        assert report.syntax_tree is None

    def test_unknown_tag_is_text_only(self, engine):
        report = engine.analyze("whatever", language="cobol")
        assert report.language == "unknown"
        assert report.mode == AnalysisMode.TEXT_ONLY


# =============================================================================
# Fallback and rejection
# =============================================================================


class TestParseFallback:
    """Test the degraded path for unparseable source."""

    @pytest.mark.parametrize(
        "code",
        [
            "function f() { if (x) {",
            "const = ;",
            "}}}{{{",
            "let a = (1 + ;\nwhile (true) {",
        ],
    )
    def test_never_raises(self, engine, code):
        report = engine.analyze(code, "broken.js")
        assert report.mode == AnalysisMode.TEXT_PATTERNS
        assert report.complexity.cyclomatic >= 1
        assert report.security.findings == []
        assert report.security.score == 5.0
        assert report.syntax_tree is None

    def test_fallback_keeps_functions_and_metrics(self, engine):
        code = "function ok(a) { if (a) { return 1; } }\nfunction broken( {\n"
        report = engine.analyze(code, "broken.js")
        assert [f.name for f in report.dependencies.functions] == ["ok"]
        assert report.complexity.cyclomatic == 2
        assert report.metrics.total_lines == 3

    def test_fallback_logged(self, engine, caplog):
        caplog.set_level(logging.INFO, logger=ANALYSIS_LOGGER_NAME)
        engine.analyze("function f( {", "broken.js")
        [record] = _events(caplog, "parse_fallback")
        assert record.attempts == ["javascript", "typescript"]
        assert record.source_file == "broken.js"


class TestInputRejection:
    """Test the only hard failures."""

    @pytest.mark.parametrize("code", ["", "   ", "\n\t\n"])
    def test_empty_input(self, engine, code):
        with pytest.raises(InvalidInputError):
            engine.analyze(code)

    def test_too_large(self):
        engine = CodeAnalysisEngine(max_source_bytes=16)
        with pytest.raises(SourceTooLargeError) as exc_info:
            engine.analyze("const value = 'abcdef';")
        assert exc_info.value.size == 23
        assert exc_info.value.limit == 16

    def test_size_counts_utf8_bytes(self):
        """Multi-byte characters count by their encoded size."""
        engine = CodeAnalysisEngine(max_source_bytes=10)
        with pytest.raises(SourceTooLargeError):
            engine.analyze("'ééééé'")

    def test_too_large_is_invalid_input(self):
        engine = CodeAnalysisEngine(max_source_bytes=1)
        with pytest.raises(InvalidInputError):
            engine.analyze("ab")

    def test_rejection_logged(self, engine, caplog):
        caplog.set_level(logging.INFO, logger=ANALYSIS_LOGGER_NAME)
        with pytest.raises(InvalidInputError):
            engine.analyze("", "empty.js")
        [record] = _events(caplog, "input_rejected")
        assert record.levelno == logging.WARNING
        assert record.source_file == "empty.js"


# =============================================================================
# Fault isolation and logging
# =============================================================================


class TestFaultIsolation:
    """One failing analyzer leaves the rest of the report intact."""

    def test_dependency_fault(self, engine, caplog, monkeypatch):
        def explode(tree):
            raise RuntimeError("unexpected tree shape")

        monkeypatch.setattr(dependencies, "extract_exports", explode)
        caplog.set_level(logging.INFO, logger=ANALYSIS_LOGGER_NAME)

        report = engine.analyze("import a from 'a';\neval(x);\nif (y) {}", "f.js")

        assert report.mode == AnalysisMode.SYNTAX_TREE
        assert report.dependencies.imports == []
        assert report.dependencies.exports == []
        assert report.security.score == 3.0
        assert report.complexity.cyclomatic == 2

        [record] = _events(caplog, "analyzer_fault")
        assert record.analyzer == "dependencies"
        assert record.error == "unexpected tree shape"
        assert record.exc_info is not None

    def test_completion_logged(self, engine, caplog):
        caplog.set_level(logging.INFO, logger=ANALYSIS_LOGGER_NAME)
        report = engine.analyze(SAMPLE_SOURCE, "user.js")
        [record] = _events(caplog, "analysis_complete")
        assert record.getMessage() == "ANALYSIS_COMPLETE"
        assert record.mode == "syntax_tree"
        assert record.cyclomatic == report.complexity.cyclomatic
        assert record.duration_ms >= 0
        assert "duration_ms" not in report.to_dict()
