"""Cyclomatic complexity, Halstead volume and maintainability index."""

from __future__ import annotations

import math

from ..constants import (
    HALSTEAD_OPERAND_RE,
    HALSTEAD_OPERATOR_RE,
    MI_BASE,
    MI_COMPLEXITY_WEIGHT,
    MI_LOC_WEIGHT,
    MI_VOLUME_WEIGHT,
)
from .faults import isolate_faults
from .functions import collect_functions, count_decision_points
from .models import ComplexityReport, FunctionRecord
from .syntax_tree import SyntaxTree


def halstead_volume(source_code: str) -> float:
    """Approximate Halstead volume from raw text.

    Operators are single punctuation characters, operands identifier-like
    words. Volume is ``N * log2(n)`` where ``N`` is the total token count
    and ``n`` the vocabulary size; an empty vocabulary gives 0.
    """
    operators = HALSTEAD_OPERATOR_RE.findall(source_code)
    operands = HALSTEAD_OPERAND_RE.findall(source_code)
    vocabulary = len(set(operators)) + len(set(operands))
    if vocabulary == 0:
        return 0.0
    return (len(operators) + len(operands)) * math.log2(vocabulary)


def maintainability_index(volume: float, cyclomatic: int, lines_of_code: int) -> float:
    """``max(0, 171 - 5.2 ln(V) - 0.23 CC - 16.2 ln(LOC))``.

    A zero volume contributes nothing instead of ``ln(0)``.
    """
    volume_term = MI_VOLUME_WEIGHT * math.log(volume) if volume > 0 else 0.0
    loc_term = MI_LOC_WEIGHT * math.log(max(lines_of_code, 1))
    return max(0.0, MI_BASE - volume_term - MI_COMPLEXITY_WEIGHT * cyclomatic - loc_term)


def complexity_from_counts(
    source_code: str,
    cyclomatic: int,
    functions: list[FunctionRecord] | None = None,
) -> ComplexityReport:
    """Build a report around an already-known cyclomatic count."""
    volume = halstead_volume(source_code)
    return ComplexityReport(
        cyclomatic=cyclomatic,
        maintainability_index=maintainability_index(volume, cyclomatic, len(source_code.split("\n"))),
        halstead_volume=volume,
        functions=functions or [],
    )


@isolate_faults("complexity", ComplexityReport)
def compute_complexity(tree: SyntaxTree, source_code: str) -> ComplexityReport:
    """Whole-file and per-function complexity for a parsed file."""
    cyclomatic = 1 + count_decision_points(tree)
    return complexity_from_counts(source_code, cyclomatic, collect_functions(tree))
