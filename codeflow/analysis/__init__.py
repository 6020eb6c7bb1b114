"""Static analysis of JavaScript / TypeScript source.

Sources are parsed with tree-sitter into an immutable ``SyntaxTree``; the
complexity, security, dependency and cloud-service analyzers then run over
the same tree. Input that does not parse is analyzed with text patterns
instead.

Quick start::

    from codeflow.analysis import CodeAnalysisEngine

    report = CodeAnalysisEngine().analyze("eval('1 + 1');", filename="a.js")
    print(report.security.score)  # 3.0
"""

from .comparison import ComparisonReport, RiskLevel, compare_reports
from .engine import CodeAnalysisEngine, analyze
from .languages import Language, detect_language
from .models import (
    AnalysisMode,
    AnalysisReport,
    ApiCall,
    CloudServiceUsage,
    ComplexityReport,
    DatabaseOperation,
    DependencyReport,
    FunctionRecord,
    SecurityFinding,
    SecurityIssueType,
    SecurityReport,
    Severity,
    TextMetrics,
    VariableRecord,
)
from .parser import SourceParser
from .project_map import DependencyMap, ProjectFile, build_dependency_map
from .query import AnyOf, NodePattern, pattern, query
from .syntax_tree import Node, SyntaxTree

__all__ = [
    "AnalysisMode",
    "AnalysisReport",
    "AnyOf",
    "ApiCall",
    "CloudServiceUsage",
    "CodeAnalysisEngine",
    "ComparisonReport",
    "ComplexityReport",
    "DatabaseOperation",
    "DependencyMap",
    "DependencyReport",
    "FunctionRecord",
    "Language",
    "Node",
    "NodePattern",
    "ProjectFile",
    "RiskLevel",
    "SecurityFinding",
    "SecurityIssueType",
    "SecurityReport",
    "Severity",
    "SourceParser",
    "SyntaxTree",
    "TextMetrics",
    "VariableRecord",
    "analyze",
    "build_dependency_map",
    "compare_reports",
    "detect_language",
    "pattern",
    "query",
]
