"""Security scoring over the ``SECURITY_RULES`` catalogue.

The score starts at ``SECURITY_BASE_SCORE`` and every finding deducts its
rule's fixed amount; the result is clamped to ``[0, SECURITY_BASE_SCORE]``.
"""

from __future__ import annotations

from ..constants import MAX_SNIPPET_LENGTH, SECURITY_BASE_SCORE, SECURITY_MIN_SCORE
from .faults import isolate_faults
from .models import SecurityFinding, SecurityReport
from .query import query
from .security_patterns import SECURITY_RULES, SecurityRule
from .syntax_tree import SyntaxTree


def _truncate(text: str, max_len: int) -> str:
    """Truncate text to max_len characters, adding ellipsis if needed."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def run_rule(rule: SecurityRule, tree: SyntaxTree) -> list[SecurityFinding]:
    """Execute a single rule against a tree and return its findings.

    Args:
        rule: The security rule to execute.
        tree: The parsed file.

    Returns:
        One ``SecurityFinding`` per matching node, in document order.
    """
    findings: list[SecurityFinding] = []
    for node in query(tree, rule.node_pattern):
        findings.append(
            SecurityFinding(
                type=rule.issue_type,
                severity=rule.severity,
                line=node.line,
                column=node.span.start_column,
                description=rule.description,
                remediation=rule.remediation,
                code_snippet=_truncate(tree.text_of(node), MAX_SNIPPET_LENGTH),
                cwe_id=rule.cwe_id,
            )
        )
    return findings


def score_findings(findings: list[SecurityFinding]) -> float:
    """Apply each finding's rule deduction to the base score."""
    deductions = {rule.issue_type: rule.deduction for rule in SECURITY_RULES}
    score = SECURITY_BASE_SCORE - sum(deductions[f.type] for f in findings)
    return min(SECURITY_BASE_SCORE, max(SECURITY_MIN_SCORE, score))


@isolate_faults("security", SecurityReport)
def analyze_security(tree: SyntaxTree) -> SecurityReport:
    """Run every rule in catalogue order and score the file."""
    findings: list[SecurityFinding] = []
    for rule in SECURITY_RULES:
        findings.extend(run_rule(rule, tree))
    return SecurityReport(score=score_findings(findings), findings=findings)
