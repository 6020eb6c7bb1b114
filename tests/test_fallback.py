"""Tests for the text-pattern strategy used when parsing fails."""

import time

from codeflow.analysis.languages import Language
from codeflow.analysis.models import AnalysisMode
from codeflow.analysis.strategies import TextPatternStrategy, text_only_result

BROKEN_SOURCE = (
    "import fs from 'fs';\n"
    "const cfg = require('./config');\n"
    "async function load(path, ...rest) {\n"
    "  if (path) { return fs.read(path); }\n"
    "  for (const p of rest) {}\n"
    "}\n"
    "const handler = (req) => req.body;\n"
    "let counter;\n"
    "function broken( {\n"
)


class TestTextPatternStrategy:
    """Test the regular-expression heuristics."""

    def setup_method(self):
        self.strategy = TextPatternStrategy()
        self.result = self.strategy.analyze(BROKEN_SOURCE, Language.JAVASCRIPT)

    def test_mode(self):
        assert self.result.mode == AnalysisMode.TEXT_PATTERNS
        assert self.result.syntax_tree is None

    def test_imports(self):
        assert self.result.dependencies.imports == ["fs", "./config"]

    def test_functions(self):
        """Declarations and arrows are found; the unclosed header is not."""
        functions = self.result.dependencies.functions
        assert [(f.name, f.line, f.kind) for f in functions] == [
            ("load", 3, "function"),
            ("handler", 7, "arrow"),
        ]
        load, handler = functions
        assert load.is_async
        assert load.parameters == ["path", "...rest"]
        assert load.complexity == 3
        assert load.return_type == "mixed"
        assert handler.parameters == ["req"]
        assert handler.return_type == "mixed"

    def test_keyword_complexity(self):
        assert self.result.complexity.cyclomatic == 3
        assert self.result.complexity.cyclomatic >= 1

    def test_variables(self):
        variables = [(v.name, v.type, v.scope) for v in self.result.dependencies.variables]
        assert variables == [
            ("cfg", "unknown", "global"),
            ("p", "undefined", "function"),
            ("handler", "function", "global"),
            ("counter", "undefined", "global"),
        ]

    def test_no_security_findings(self):
        assert self.result.security.findings == []
        assert self.result.security.score == 5.0
        assert self.result.cloud_services == []


class TestHeuristics:
    """Test individual helpers."""

    def test_keyword_count_plus_one(self):
        assert TextPatternStrategy.keyword_complexity("const a = 1;") == 1
        assert TextPatternStrategy.keyword_complexity("if (a) {} else if (b) {} while (c) {}") == 4

    def test_keywords_need_word_boundaries(self):
        """Identifiers like ``format`` or ``notify`` do not count."""
        assert TextPatternStrategy.keyword_complexity("format(); notify(); switcher();") == 1

    def test_find_imports_forms(self):
        code = "import './side';\nimport { a, b } from \"pkg\";\nconst m = require('m');\nimport('lazy');"
        assert TextPatternStrategy.find_imports(code) == ["./side", "pkg", "m", "lazy"]

    def test_function_expression_not_duplicated(self):
        """A named function expression is reported once, under the variable name."""
        functions = TextPatternStrategy().find_functions("const run = function inner(a) { return a; };")
        assert [f.name for f in functions] == ["run"]

    def test_block_scope(self):
        variables = TextPatternStrategy.find_variables("{ let x = 1; }", [])
        assert [(v.name, v.type, v.scope) for v in variables] == [("x", "number", "block")]

    def test_scope_follows_brace_balance(self):
        code = "function f() { if (x) { let a; } }\nlet b;\n{ let c = 'c'; }\n} }\nlet d;\n"
        variables = TextPatternStrategy().analyze(code, Language.JAVASCRIPT).dependencies.variables
        assert [(v.name, v.scope, v.line) for v in variables] == [
            ("a", "function", 1),
            ("b", "global", 2),
            ("c", "block", 3),
            ("d", "global", 5),
        ]

    def test_large_input_scales_linearly(self):
        """Thousands of declarations are scoped and numbered in one pass."""
        code = "let a = 1;\n" * 80000 + "}"
        start = time.perf_counter()
        result = TextPatternStrategy().analyze(code, Language.JAVASCRIPT)
        elapsed = time.perf_counter() - start

        variables = result.dependencies.variables
        assert len(variables) == 80000
        assert all(v.scope == "global" for v in variables)
        assert variables[0].line == 1
        assert variables[-1].line == 80000
        assert elapsed < 10.0

    def test_exports(self):
        result = TextPatternStrategy().analyze("export function a() {}\nexport const b = 1;\n{", Language.JAVASCRIPT)
        assert result.dependencies.exports == ["a", "b"]


class TestTextOnly:
    def test_empty_sections(self):
        result = text_only_result()
        assert result.mode == AnalysisMode.TEXT_ONLY
        assert result.complexity.cyclomatic == 1
        assert result.complexity.functions == []
        assert result.security.findings == []
        assert result.dependencies.imports == []
