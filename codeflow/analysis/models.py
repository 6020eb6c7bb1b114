"""Pydantic models for source analysis reports.

This module defines the data models produced by the analyzers and merged
by the engine into one ``AnalysisReport``. All models are frozen once
built; a report is created per ``analyze`` call and owned by the caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import SECURITY_BASE_SCORE
from .syntax_tree import SyntaxTree


class Severity(str, Enum):
    """Severity levels for security findings."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SecurityIssueType(str, Enum):
    """Fixed catalogue of security heuristics."""

    EVAL_USAGE = "eval-usage"
    INNER_HTML_USAGE = "innerHTML-usage"
    HARDCODED_CREDENTIAL = "hardcoded-credential"
    UNSAFE_REGEX = "unsafe-regex"


class AnalysisMode(str, Enum):
    """How a report was produced."""

    SYNTAX_TREE = "syntax_tree"
    TEXT_PATTERNS = "text_patterns"
    TEXT_ONLY = "text_only"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class FunctionRecord(_FrozenModel):
    """A function, method, or arrow-function found in the source.

    Attributes:
        name: Declared name, the variable it is assigned to, or
            ``"anonymous"``.
        line: 1-based declaration line.
        complexity: Cyclomatic complexity of the function's own body;
            nested functions are scored separately.
        parameters: Parameter names, or the pattern kind for destructured
            parameters.
        parameter_types: Inferred type per parameter (``"unknown"`` when
            nothing is known).
        return_type: ``"void"`` when the body has no return statement,
            otherwise ``"mixed"``.
        kind: One of ``"function"``, ``"arrow"``, ``"method"`` or
            ``"generator"``.
        is_async: ``True`` when the function uses the ``async`` keyword.
    """

    name: str
    line: int
    complexity: int = 1
    parameters: list[str] = Field(default_factory=list)
    parameter_types: list[str] = Field(default_factory=list)
    return_type: str = "void"
    kind: str = "function"
    is_async: bool = False


class VariableRecord(_FrozenModel):
    """A variable binding introduced by a declarator.

    Attributes:
        name: Bound identifier.
        type: One of ``string``, ``number``, ``boolean``, ``array``,
            ``object``, ``function``, ``unknown`` or ``undefined``.
        scope: ``global``, ``function`` or ``block``.
        line: 1-based declaration line.
    """

    name: str
    type: str
    scope: str
    line: int


class SecurityFinding(_FrozenModel):
    """A single security finding.

    Attributes:
        type: Catalogue entry that matched.
        severity: Risk severity level.
        line: 1-based line number of the finding.
        column: 0-based column offset of the finding.
        description: Human-readable explanation.
        remediation: Actionable remediation advice, if any.
        code_snippet: The matched source fragment (truncated).
        cwe_id: Applicable CWE identifier, if any.
    """

    type: SecurityIssueType
    severity: Severity
    line: int
    column: int = 0
    description: str
    remediation: str | None = None
    code_snippet: str = ""
    cwe_id: str | None = None


class ComplexityReport(_FrozenModel):
    """Whole-file complexity metrics.

    ``maintainability_index`` is clamped at zero by the analyzer; callers
    rendering it for display may still clamp the upper end.
    """

    cyclomatic: int = 1
    maintainability_index: float = 0.0
    halstead_volume: float = 0.0
    functions: list[FunctionRecord] = Field(default_factory=list)


class SecurityReport(_FrozenModel):
    score: float = SECURITY_BASE_SCORE
    findings: list[SecurityFinding] = Field(default_factory=list)


class ApiCall(_FrozenModel):
    """An outbound HTTP call.

    Attributes:
        type: ``"fetch"`` or ``"axios"``.
        endpoint: First argument's string value, or ``"template_literal"``
            / ``"dynamic"``.
        method: HTTP method, ``"GET"`` by default for fetch, ``"unknown"``
            for axios.
        line: 1-based line number.
    """

    type: str
    endpoint: str
    method: str
    line: int


class DatabaseOperation(_FrozenModel):
    """A database operation recognised from call or literal shape.

    Attributes:
        type: Store kind, ``"MongoDB"`` or ``"SQL"``.
        operation: Method name or SQL keyword.
        target: ``"collection"`` for MongoDB-style calls, ``"unknown"``
            for SQL literals.
        line: 1-based line number.
    """

    type: str
    operation: str
    target: str
    line: int


class DependencyReport(_FrozenModel):
    imports: list[str] = Field(default_factory=list)
    exports: list[str] = Field(default_factory=list)
    functions: list[FunctionRecord] = Field(default_factory=list)
    variables: list[VariableRecord] = Field(default_factory=list)
    api_calls: list[ApiCall] = Field(default_factory=list)
    database_operations: list[DatabaseOperation] = Field(default_factory=list)


class CloudServiceUsage(_FrozenModel):
    provider: str
    service: str
    usage: str
    line: int


class TextMetrics(_FrozenModel):
    """Counts computed from raw text, independent of parsing."""

    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    empty_lines: int = 0
    characters: int = 0
    words: int = 0


class AnalysisReport(_FrozenModel):
    """Aggregated analysis of one source file.

    The syntax tree is kept for in-process callers but never serialized;
    use ``to_dict(include_tree=True)`` to get it as plain nested data.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    filename: str
    language: str
    mode: AnalysisMode
    syntax_tree: SyntaxTree | None = Field(default=None, exclude=True, repr=False)
    complexity: ComplexityReport = Field(default_factory=ComplexityReport)
    security: SecurityReport = Field(default_factory=SecurityReport)
    dependencies: DependencyReport = Field(default_factory=DependencyReport)
    cloud_services: list[CloudServiceUsage] = Field(default_factory=list)
    metrics: TextMetrics = Field(default_factory=TextMetrics)

    def to_dict(self, include_tree: bool = False) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        data = self.model_dump(mode="json")
        if include_tree:
            data["syntax_tree"] = self.syntax_tree.to_dict() if self.syntax_tree else None
        return data
