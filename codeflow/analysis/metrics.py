"""Text-only metrics, computed without parsing."""

from __future__ import annotations

from .models import TextMetrics

COMMENT_MARKERS = ("//", "*", "/*")


def is_comment_line(line: str) -> bool:
    return line.strip().startswith(COMMENT_MARKERS)


def calculate_metrics(source_code: str) -> TextMetrics:
    """Line, character and word counts for *source_code*.

    ``code_lines`` counts every non-blank line, comments included.
    """
    lines = source_code.split("\n")
    non_empty = [line for line in lines if line.strip()]
    return TextMetrics(
        total_lines=len(lines),
        code_lines=len(non_empty),
        comment_lines=sum(1 for line in lines if is_comment_line(line)),
        empty_lines=len(lines) - len(non_empty),
        characters=len(source_code),
        words=len(source_code.split()),
    )
