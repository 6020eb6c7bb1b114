"""Analysis orchestrator.

``CodeAnalysisEngine.analyze`` validates the input, resolves the language,
picks a strategy and merges its output with the text metrics into one
``AnalysisReport``. A parse failure is not an error for the caller: the
engine switches to the text-pattern strategy and still returns a complete
report. Only rejected input raises.

Usage::

    engine = CodeAnalysisEngine()
    report = engine.analyze(source, filename="app.js")
    print(report.complexity.cyclomatic, report.security.score)
"""

from __future__ import annotations

import logging
import time

from ..constants import MAX_SOURCE_BYTES
from ..core.exceptions import InvalidInputError, ParseError, SourceTooLargeError
from ..logging_config import get_analysis_logger
from .languages import Language, detect_language
from .metrics import calculate_metrics
from .models import AnalysisReport
from .parser import SourceParser
from .strategies import (
    StrategyResult,
    SyntaxTreeStrategy,
    TextPatternStrategy,
    text_only_result,
)

logger = logging.getLogger(__name__)
analysis_logger = get_analysis_logger()


class CodeAnalysisEngine:
    """Runs the analyzers over one source file per call.

    The engine holds only read-only collaborators, so a single instance
    can serve concurrent calls from several threads.
    """

    def __init__(
        self,
        parser: SourceParser | None = None,
        max_source_bytes: int = MAX_SOURCE_BYTES,
    ) -> None:
        self.tree_strategy = SyntaxTreeStrategy(parser)
        self.text_strategy = TextPatternStrategy()
        self.max_source_bytes = max_source_bytes

    def validate(self, source_text: str, filename: str) -> None:
        """Reject empty or oversized input.

        Raises:
            InvalidInputError: If the source is empty or whitespace only.
            SourceTooLargeError: If the UTF-8 source exceeds the size limit.
        """
        if not source_text or not source_text.strip():
            self._log_rejection(filename, 0, "empty source")
            raise InvalidInputError("Source code is empty")

        size = len(source_text.encode("utf-8"))
        if size > self.max_source_bytes:
            self._log_rejection(filename, size, "source too large")
            raise SourceTooLargeError(
                f"Source is {size} bytes; the limit is {self.max_source_bytes} bytes",
                size=size,
                limit=self.max_source_bytes,
            )

    def resolve_language(self, source_text: str, filename: str, language: str | None) -> Language:
        if language:
            return Language.from_tag(language)
        return detect_language(filename, source_text)

    def analyze(
        self,
        source_text: str,
        filename: str = "untitled",
        language: str | None = None,
    ) -> AnalysisReport:
        """Analyze one source file.

        Args:
            source_text: Full file contents.
            filename: Name used for language detection and reporting.
            language: Language tag; detected from *filename* and the source
                when omitted. Tags without a grammar produce a text-only
                report.

        Returns:
            A complete ``AnalysisReport``.

        Raises:
            InvalidInputError: If the source is empty or too large.
        """
        self.validate(source_text, filename)
        started = time.perf_counter()
        resolved = self.resolve_language(source_text, filename, language)

        if resolved.has_grammar:
            result = self._analyze_with_fallback(source_text, resolved, filename)
        else:
            result = text_only_result()

        report = AnalysisReport(
            filename=filename,
            language=resolved.value,
            mode=result.mode,
            syntax_tree=result.syntax_tree,
            complexity=result.complexity,
            security=result.security,
            dependencies=result.dependencies,
            cloud_services=result.cloud_services,
            metrics=calculate_metrics(source_text),
        )

        analysis_logger.info(
            "ANALYSIS_COMPLETE",
            extra={
                "event": "analysis_complete",
                "source_file": filename,
                "language": resolved.value,
                "size": len(source_text),
                "mode": result.mode.value,
                "cyclomatic": report.complexity.cyclomatic,
                "security_score": report.security.score,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return report

    def _analyze_with_fallback(self, source_text: str, language: Language, filename: str) -> StrategyResult:
        try:
            return self.tree_strategy.analyze(source_text, language, filename)
        except ParseError as e:
            analysis_logger.info(
                "PARSE_FALLBACK",
                extra={
                    "event": "parse_fallback",
                    "source_file": filename,
                    "language": language.value,
                    "attempts": list(e.attempts),
                    "error": str(e),
                },
            )
            logger.debug("Falling back to text patterns for %s: %s", filename, e)
            return self.text_strategy.analyze(source_text, language, filename)

    def _log_rejection(self, filename: str, size: int, reason: str) -> None:
        analysis_logger.warning(
            "INPUT_REJECTED",
            extra={"event": "input_rejected", "source_file": filename, "size": size, "error": reason},
        )


def analyze(source_text: str, filename: str = "untitled", language: str | None = None) -> AnalysisReport:
    """Analyze *source_text* with a default engine."""
    return CodeAnalysisEngine().analyze(source_text, filename=filename, language=language)
