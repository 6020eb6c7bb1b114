"""Tests for before/after report comparison."""

import pytest

from codeflow.analysis.comparison import RiskLevel, compare_reports, risk_level, risk_score


@pytest.fixture
def compare(engine):
    def _compare(before: str, after: str):
        return compare_reports(engine.analyze(before, "f.js"), engine.analyze(after, "f.js"))

    return _compare


class TestCompareReports:
    """Test the deltas between two reports."""

    def test_regression(self, compare):
        before = "import x from 'x';\nfunction keep() {}\nfunction gone() {}"
        after = (
            "import y from 'y';\n"
            "function keep(v) { if (v) {} if (!v) {} }\n"
            "function added(v) { eval(v); }"
        )
        result = compare(before, after)

        assert result.complexity.before.cyclomatic == 1
        assert result.complexity.after.cyclomatic == 3
        assert result.complexity.change == 2
        assert result.security.before == 5.0
        assert result.security.after == 3.0
        assert result.security.change == -2.0
        assert result.security.new_issues == 1
        assert result.dependencies.added_imports == ["y"]
        assert result.dependencies.removed_imports == ["x"]
        assert [f.name for f in result.dependencies.added_functions] == ["added"]
        assert [f.name for f in result.dependencies.removed_functions] == ["gone"]
        assert result.risk_score == pytest.approx(6.0)
        assert result.risk_level == RiskLevel.CRITICAL

    def test_improvement_is_low_risk(self, compare):
        """Only regressions add to the risk score."""
        result = compare("eval(a);\nif (a) {}", "const a = 1;")
        assert result.complexity.change == -1
        assert result.security.change == 2.0
        assert result.security.new_issues == -1
        assert result.risk_score == 0.0
        assert result.risk_level == RiskLevel.LOW

    def test_identical_sources(self, compare):
        result = compare("const a = 1;", "const a = 1;")
        assert result.dependencies.added_imports == []
        assert result.dependencies.removed_functions == []
        assert result.risk_level == RiskLevel.LOW

    def test_serializable(self, compare):
        data = compare("let a;", "let b;").model_dump(mode="json")
        assert data["risk_level"] == "low"


class TestRiskScore:
    def test_weights(self):
        assert risk_score(4, -1.0, 2) == pytest.approx(0.5 * 4 + 2 * 1.0 + 2)

    def test_negative_changes_ignored(self):
        assert risk_score(-3, 2.0, -1) == 0.0

    @pytest.mark.parametrize(
        "score,level",
        [
            (0.0, RiskLevel.LOW),
            (0.99, RiskLevel.LOW),
            (1.0, RiskLevel.MEDIUM),
            (2.5, RiskLevel.MEDIUM),
            (3.0, RiskLevel.HIGH),
            (4.99, RiskLevel.HIGH),
            (5.0, RiskLevel.CRITICAL),
            (12.0, RiskLevel.CRITICAL),
        ],
    )
    def test_thresholds(self, score, level):
        assert risk_level(score) == level
