"""Before/after comparison of two analysis reports."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..constants import (
    RISK_COMPLEXITY_WEIGHT,
    RISK_CRITICAL_THRESHOLD,
    RISK_HIGH_THRESHOLD,
    RISK_MEDIUM_THRESHOLD,
    RISK_NEW_ISSUE_WEIGHT,
    RISK_SECURITY_WEIGHT,
)
from .models import AnalysisReport, ComplexityReport, FunctionRecord


class RiskLevel(str, Enum):
    """Risk of a change, from the weighted risk score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComplexityDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    before: ComplexityReport
    after: ComplexityReport
    change: int


class SecurityDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    before: float
    after: float
    change: float
    new_issues: int


class DependencyDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    added_imports: list[str] = Field(default_factory=list)
    removed_imports: list[str] = Field(default_factory=list)
    added_functions: list[FunctionRecord] = Field(default_factory=list)
    removed_functions: list[FunctionRecord] = Field(default_factory=list)


class ComparisonReport(BaseModel):
    """Differences between two reports of (usually) the same file.

    Attributes:
        complexity: Cyclomatic complexity before/after and the change.
        security: Security score before/after, the change, and the change
            in finding count.
        dependencies: Imports and named functions present on one side only.
        risk_score: Weighted score the risk level is derived from.
        risk_level: ``low``, ``medium``, ``high`` or ``critical``.
    """

    model_config = ConfigDict(frozen=True)

    complexity: ComplexityDelta
    security: SecurityDelta
    dependencies: DependencyDelta
    risk_score: float
    risk_level: RiskLevel


def risk_score(complexity_change: int, security_change: float, new_issues: int) -> float:
    """Only regressions count: more complexity, a lower score, more findings."""
    return (
        RISK_COMPLEXITY_WEIGHT * max(0, complexity_change)
        + RISK_SECURITY_WEIGHT * max(0.0, -security_change)
        + RISK_NEW_ISSUE_WEIGHT * max(0, new_issues)
    )


def risk_level(score: float) -> RiskLevel:
    if score >= RISK_CRITICAL_THRESHOLD:
        return RiskLevel.CRITICAL
    if score >= RISK_HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score >= RISK_MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def compare_reports(before: AnalysisReport, after: AnalysisReport) -> ComparisonReport:
    """Compare two reports; list differences keep each side's order."""
    complexity_change = after.complexity.cyclomatic - before.complexity.cyclomatic
    security_change = after.security.score - before.security.score
    new_issues = len(after.security.findings) - len(before.security.findings)

    before_imports = set(before.dependencies.imports)
    after_imports = set(after.dependencies.imports)
    before_names = {f.name for f in before.dependencies.functions}
    after_names = {f.name for f in after.dependencies.functions}

    score = risk_score(complexity_change, security_change, new_issues)
    return ComparisonReport(
        complexity=ComplexityDelta(before=before.complexity, after=after.complexity, change=complexity_change),
        security=SecurityDelta(
            before=before.security.score,
            after=after.security.score,
            change=security_change,
            new_issues=new_issues,
        ),
        dependencies=DependencyDelta(
            added_imports=[i for i in after.dependencies.imports if i not in before_imports],
            removed_imports=[i for i in before.dependencies.imports if i not in after_imports],
            added_functions=[f for f in after.dependencies.functions if f.name not in before_names],
            removed_functions=[f for f in before.dependencies.functions if f.name not in after_names],
        ),
        risk_score=score,
        risk_level=risk_level(score),
    )
