"""Analysis strategies selected by the engine.

``SyntaxTreeStrategy`` parses the source and runs every tree analyzer.
``TextPatternStrategy`` is the degraded mode used when parsing fails: it
recovers functions, variables, imports and a keyword-based complexity
from regular expressions over the raw text, and reports no security
findings.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_left, bisect_right
from collections.abc import Iterable
from dataclasses import dataclass, field

from .cloud_services import detect_cloud_services
from .complexity import complexity_from_counts, compute_complexity
from .dependencies import extract_dependencies
from .languages import Language
from .models import (
    AnalysisMode,
    CloudServiceUsage,
    ComplexityReport,
    DependencyReport,
    FunctionRecord,
    SecurityReport,
    VariableRecord,
)
from .parser import SourceParser
from .security import analyze_security
from .syntax_tree import SyntaxTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyResult:
    """Analyzer outputs produced by one strategy run."""

    mode: AnalysisMode
    complexity: ComplexityReport = field(default_factory=ComplexityReport)
    security: SecurityReport = field(default_factory=SecurityReport)
    dependencies: DependencyReport = field(default_factory=DependencyReport)
    cloud_services: list[CloudServiceUsage] = field(default_factory=list)
    syntax_tree: SyntaxTree | None = None


class SyntaxTreeStrategy:
    """Parse once, then run the four tree analyzers over the same tree."""

    mode = AnalysisMode.SYNTAX_TREE

    def __init__(self, parser: SourceParser | None = None) -> None:
        self.parser = parser or SourceParser()

    def analyze(self, source_code: str, language: Language, filename: str | None = None) -> StrategyResult:
        """Run the tree analyzers.

        Raises:
            ParseError: If the source does not parse under either grammar.
        """
        tree = self.parser.parse(source_code, language=language.value, filename=filename)
        return StrategyResult(
            mode=self.mode,
            complexity=compute_complexity(tree, source_code),
            security=analyze_security(tree),
            dependencies=extract_dependencies(tree),
            cloud_services=detect_cloud_services(tree),
            syntax_tree=tree,
        )


# ---------------------------------------------------------------------------
# Text-pattern fallback
# ---------------------------------------------------------------------------

# [export [default]] [async] function name(args)
_FUNC_DECL_RE = re.compile(
    r"(?:export\s+(?:default\s+)?)?"
    r"(async\s+)?\bfunction\s*\*?\s*"
    r"([\w$]+)\s*"
    r"(?:<[^>]*>)?\s*"  # optional TS generics
    r"\(([^)]*)\)",
)

# [export] const/let/var name = [async] (args) =>
_ARROW_FUNC_RE = re.compile(
    r"(?:export\s+)?(?:const|let|var)\s+"
    r"([\w$]+)\s*"
    r"(?::\s*[^=]*?)?\s*"  # optional TS type annotation
    r"=\s*(async\s+)?"
    r"(?:\(([^)]*)\)|([\w$]+))\s*"
    r"(?::\s*\S[^=]*?)?\s*"  # optional TS return type
    r"=>",
)

# [export] const/let/var name = [async] function [inner](args)
_FUNC_EXPR_RE = re.compile(
    r"(?:export\s+)?(?:const|let|var)\s+"
    r"([\w$]+)\s*=\s*(async\s+)?"
    r"function\s*\*?\s*(?:[\w$]+)?\s*"
    r"\(([^)]*)\)",
)

_VAR_DECL_RE = re.compile(r"\b(?:const|let|var)\s+([\w$]+)\s*(?::[^=;\n]*)?(=\s*)?")

_IMPORT_RE = re.compile(
    r"""\bimport\s+(?:[\w$*{}\s,]+?\s+from\s+)?['"]([^'"]+)['"]"""
    r"""|\brequire\s*\(\s*['"]([^'"]+)['"]\s*\)"""
    r"""|\bimport\s*\(\s*['"]([^'"]+)['"]\s*\)"""
)

_EXPORT_RE = re.compile(
    r"\bexport\s+(?:default\s+)?(?:async\s+)?"
    r"(?:function\s*\*?|class|const|let|var|interface|type|enum)\s+([\w$]+)"
)

_DECISION_KEYWORD_RE = re.compile(r"\b(?:if|while|for|switch|catch)\b")

_RETURN_RE = re.compile(r"\breturn\b")

_PARAM_NAME_RE = re.compile(r"(\.\.\.)?\s*([\w$]+)")

_BRACE_RE = re.compile(r"[{}]")

_BLOCK_OPEN_RE = re.compile(r"\s*\{")

_NEWLINE_RE = re.compile(r"\n")

_INITIALIZER_TYPES = (
    (re.compile(r"""['"`]"""), "string"),
    (re.compile(r"[-+]?\.?\d"), "number"),
    (re.compile(r"(?:true|false)\b"), "boolean"),
    (re.compile(r"\["), "array"),
    (re.compile(r"\{"), "object"),
    (re.compile(r"null\b"), "object"),
    (re.compile(r"undefined\b"), "undefined"),
    (re.compile(r"(?:async\s+)?function\b"), "function"),
    (re.compile(r"(?:async\s+)?(?:\([^)]*\)|[\w$]+)\s*=>"), "function"),
)


class _LineIndex:
    """Maps character offsets to 1-based line numbers."""

    def __init__(self, source_code: str) -> None:
        self._newlines = [m.start() for m in _NEWLINE_RE.finditer(source_code)]

    def line_at(self, offset: int) -> int:
        return bisect_left(self._newlines, offset) + 1


class _Spans:
    """Half-open ``[start, end)`` offset ranges, merged and sorted so
    membership is a binary search."""

    def __init__(self, ranges: Iterable[tuple[int, int]]) -> None:
        self._starts: list[int] = []
        self._ends: list[int] = []
        for start, end in sorted(ranges):
            if start >= end:
                continue
            if self._ends and start <= self._ends[-1]:
                self._ends[-1] = max(self._ends[-1], end)
            else:
                self._starts.append(start)
                self._ends.append(end)

    def __contains__(self, offset: int) -> bool:
        index = bisect_right(self._starts, offset) - 1
        return index >= 0 and offset < self._ends[index]


def _block_end(source_code: str, start: int) -> int | None:
    """Offset just past the brace block opening at or after *start*.

    Braces inside strings are not skipped.
    """
    opening = source_code.find("{", start)
    if opening == -1:
        return None
    depth = 0
    for index in range(opening, len(source_code)):
        char = source_code[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return len(source_code)


def _parameter_names(raw: str | None) -> list[str]:
    if not raw or not raw.strip():
        return []
    names = []
    for part in raw.split(","):
        match = _PARAM_NAME_RE.match(part.strip())
        if match is None:
            names.append(part.strip())
            continue
        rest, name = match.groups()
        names.append(f"...{name}" if rest else name)
    return names


def _initializer_type(text: str) -> str:
    for type_re, type_name in _INITIALIZER_TYPES:
        if type_re.match(text):
            return type_name
    return "unknown"


@dataclass(frozen=True)
class _FunctionMatch:
    name: str
    start: int
    body_start: int
    body_end: int
    parameters: list[str]
    kind: str
    is_async: bool
    expression_body: bool = False


class TextPatternStrategy:
    """Regular-expression heuristics over raw text.

    Counts are approximate: keywords inside strings or comments are
    counted, and nested braces inside strings confuse block matching.
    """

    mode = AnalysisMode.TEXT_PATTERNS

    def analyze(self, source_code: str, language: Language, filename: str | None = None) -> StrategyResult:
        matches = self.find_functions(source_code)
        lines = _LineIndex(source_code)
        functions = [self._describe(source_code, m, lines) for m in matches]
        dependencies = DependencyReport(
            imports=self.find_imports(source_code),
            exports=[m.group(1) for m in _EXPORT_RE.finditer(source_code)],
            functions=functions,
            variables=self.find_variables(source_code, matches),
        )
        return StrategyResult(
            mode=self.mode,
            complexity=complexity_from_counts(source_code, self.keyword_complexity(source_code), functions),
            security=SecurityReport(),
            dependencies=dependencies,
        )

    @staticmethod
    def keyword_complexity(source_code: str) -> int:
        """``if|while|for|switch|catch`` occurrences plus one."""
        return 1 + len(_DECISION_KEYWORD_RE.findall(source_code))

    @staticmethod
    def find_imports(source_code: str) -> list[str]:
        """Module sources of import statements, requires and dynamic imports."""
        return [next(g for g in m.groups() if g is not None) for m in _IMPORT_RE.finditer(source_code)]

    def find_functions(self, source_code: str) -> list[_FunctionMatch]:
        """Declarations, arrow functions and function expressions, in order.

        A ``function`` keyword already consumed by a function-expression
        match is not reported again as a declaration.
        """
        found: list[_FunctionMatch] = []
        claimed: list[tuple[int, int]] = []

        for m in _ARROW_FUNC_RE.finditer(source_code):
            params = m.group(3) if m.group(3) is not None else m.group(4)
            found.append(self._match(source_code, m, m.group(1), params, "arrow", bool(m.group(2))))
            claimed.append(m.span())
        for m in _FUNC_EXPR_RE.finditer(source_code):
            found.append(self._match(source_code, m, m.group(1), m.group(3), "function", bool(m.group(2))))
            claimed.append(m.span())
        claimed_spans = _Spans(claimed)
        for m in _FUNC_DECL_RE.finditer(source_code):
            if m.start(2) in claimed_spans:
                continue
            found.append(self._match(source_code, m, m.group(2), m.group(3), "function", bool(m.group(1))))

        return sorted(found, key=lambda f: f.start)

    @staticmethod
    def _match(
        source_code: str,
        m: re.Match[str],
        name: str,
        params: str | None,
        kind: str,
        is_async: bool,
    ) -> _FunctionMatch:
        expression_body = kind == "arrow" and _BLOCK_OPEN_RE.match(source_code, m.end()) is None
        end = None if expression_body else _block_end(source_code, m.end())
        return _FunctionMatch(
            name=name,
            start=m.start(),
            body_start=m.end(),
            body_end=end if end is not None else m.end(),
            parameters=_parameter_names(params),
            kind=kind,
            is_async=is_async,
            expression_body=expression_body,
        )

    @staticmethod
    def _describe(source_code: str, match: _FunctionMatch, lines: _LineIndex) -> FunctionRecord:
        body = source_code[match.body_start:match.body_end]
        if match.expression_body:
            return_type = "mixed"
        else:
            return_type = "mixed" if _RETURN_RE.search(body) else "void"
        return FunctionRecord(
            name=match.name,
            line=lines.line_at(match.start),
            complexity=1 + len(_DECISION_KEYWORD_RE.findall(body)),
            parameters=match.parameters,
            parameter_types=["unknown"] * len(match.parameters),
            return_type=return_type,
            kind=match.kind,
            is_async=match.is_async,
        )

    @staticmethod
    def find_variables(source_code: str, functions: list[_FunctionMatch]) -> list[VariableRecord]:
        """``let|const|var`` bindings with a type guessed from the initializer.

        Declarations are visited in source order, so brace depth is a
        running count over the braces that precede each one.
        """
        variables: list[VariableRecord] = []
        bodies = _Spans((f.body_start, f.body_end) for f in functions)
        lines = _LineIndex(source_code)
        braces = _BRACE_RE.finditer(source_code)
        brace = next(braces, None)
        depth = 0

        for m in _VAR_DECL_RE.finditer(source_code):
            if m.group(2) is None:
                var_type = "undefined"
            else:
                var_type = _initializer_type(source_code[m.end():m.end() + 80])

            offset = m.start()
            while brace is not None and brace.start() < offset:
                depth += 1 if brace.group() == "{" else -1
                brace = next(braces, None)

            if offset in bodies:
                scope = "function"
            elif depth > 0:
                scope = "block"
            else:
                scope = "global"

            variables.append(
                VariableRecord(name=m.group(1), type=var_type, scope=scope, line=lines.line_at(offset))
            )
        return variables


def text_only_result() -> StrategyResult:
    """Empty analyzer sections for languages without a grammar."""
    logger.debug("No grammar for language; producing text-only sections")
    return StrategyResult(mode=AnalysisMode.TEXT_ONLY)
