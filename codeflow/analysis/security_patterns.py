"""
Security heuristics catalogue for JavaScript/TypeScript sources.

Each rule pairs a structural ``NodePattern`` with a severity and a fixed
score deduction. The catalogue is a read-only tuple built at import time;
the analyzer runs the rules in catalogue order, so findings are grouped by
rule and in document order within a rule.

Rule summary:
- eval-usage: call to the ``eval`` identifier (critical, -2.0)
- innerHTML-usage: member access to ``.innerHTML`` (medium, -0.5)
- hardcoded-credential: string literal whose raw text mentions
  password/secret/key and whose value is longer than 8 characters
  (high, -1.0)
- unsafe-regex: regex literal or ``new RegExp("...")`` with nested
  quantifiers prone to catastrophic backtracking (medium, -0.5)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..constants import CREDENTIAL_MIN_LENGTH
from .models import SecurityIssueType, Severity
from .query import Pattern, pattern
from .syntax_tree import REGEX_KIND, STRING_KIND, Node, SyntaxTree

# ---------------------------------------------------------------------------
# ReDoS shapes
# ---------------------------------------------------------------------------

# A group whose body ends in + or * and which is itself quantified:
# (x+)+  (x*)*  (x+)*x+  (a+)+$  (.*)*$  ([a-z]+){2,}
_NESTED_QUANTIFIER_RE = re.compile(r"\((?:[^()\\]|\\.)*[+*]\)[+*{]")

# A quantified group closing directly inside another quantified group: ((ab)+)+
_NESTED_GROUP_QUANTIFIER_RE = re.compile(r"\)[+*]\)[+*{]")

_REDOS_SHAPES: tuple[re.Pattern[str], ...] = (
    _NESTED_QUANTIFIER_RE,
    _NESTED_GROUP_QUANTIFIER_RE,
)

_CREDENTIAL_MARKERS = ("password", "secret", "key")


def is_unsafe_regex(source: str) -> bool:
    """Return ``True`` when *source* has a catastrophic-backtracking shape."""
    return any(shape.search(source) for shape in _REDOS_SHAPES)


def regex_source(node: Node) -> str | None:
    """Pattern source of a regex literal or ``new RegExp("...")``."""
    if node.kind == REGEX_KIND and node.literal is not None:
        return str(node.literal.value)
    arguments = node.child("arguments")
    if arguments is None:
        return None
    args = [a for a in arguments.named_children if a.kind != "comment"]
    if args and args[0].kind == STRING_KIND and args[0].literal is not None:
        return str(args[0].literal.value)
    return None


def _looks_like_credential(node: Node, _tree: SyntaxTree) -> bool:
    literal = node.literal
    if literal is None or not isinstance(literal.value, str):
        return False
    if len(literal.value) <= CREDENTIAL_MIN_LENGTH:
        return False
    return any(marker in literal.raw for marker in _CREDENTIAL_MARKERS)


def _has_unsafe_regex(node: Node, _tree: SyntaxTree) -> bool:
    source = regex_source(node)
    return source is not None and is_unsafe_regex(source)


# ---------------------------------------------------------------------------
# Rule definition
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SecurityRule:
    """A security heuristic.

    Attributes:
        issue_type: Catalogue tag reported on findings.
        severity: Severity of each finding.
        deduction: Score deducted per finding.
        description: Human-readable explanation.
        remediation: Guidance on how to fix the detected issue.
        cwe_id: Applicable CWE identifier.
        node_pattern: Structural pattern selecting offending nodes.
    """

    issue_type: SecurityIssueType
    severity: Severity
    deduction: float
    description: str
    remediation: str
    cwe_id: str
    node_pattern: Pattern


SECURITY_RULES: tuple[SecurityRule, ...] = (
    SecurityRule(
        issue_type=SecurityIssueType.EVAL_USAGE,
        severity=Severity.CRITICAL,
        deduction=2.0,
        description="Use of eval() can lead to code injection vulnerabilities",
        remediation=(
            "Replace eval() with JSON.parse() for data, or refactor to avoid "
            "dynamic code generation entirely."
        ),
        cwe_id="CWE-95",
        node_pattern=pattern(
            "call_expression",
            function=pattern("identifier", text="eval"),
        ),
    ),
    SecurityRule(
        issue_type=SecurityIssueType.INNER_HTML_USAGE,
        severity=Severity.MEDIUM,
        deduction=0.5,
        description="Direct innerHTML manipulation can lead to XSS vulnerabilities",
        remediation=(
            "Use textContent for plain text, or sanitize markup (e.g. DOMPurify) "
            "before assigning it."
        ),
        cwe_id="CWE-79",
        node_pattern=pattern(
            "member_expression",
            property=pattern("property_identifier", text="innerHTML"),
        ),
    ),
    SecurityRule(
        issue_type=SecurityIssueType.HARDCODED_CREDENTIAL,
        severity=Severity.HIGH,
        deduction=1.0,
        description="Potential hardcoded credential detected",
        remediation=(
            "Load credentials from environment variables or a secrets manager "
            "and rotate any value that was committed."
        ),
        cwe_id="CWE-798",
        node_pattern=pattern(STRING_KIND, where=_looks_like_credential),
    ),
    SecurityRule(
        issue_type=SecurityIssueType.UNSAFE_REGEX,
        severity=Severity.MEDIUM,
        deduction=0.5,
        description="Potentially vulnerable regular expression pattern",
        remediation=(
            "Remove nested quantifiers, e.g. rewrite (a+)+ as a+, or bound the "
            "input length before matching."
        ),
        cwe_id="CWE-1333",
        node_pattern=(
            pattern(REGEX_KIND, where=_has_unsafe_regex)
            | pattern(
                "new_expression",
                constructor=pattern("identifier", text="RegExp"),
                where=_has_unsafe_regex,
            )
        ),
    ),
)

_RULE_INDEX: dict[SecurityIssueType, SecurityRule] = {r.issue_type: r for r in SECURITY_RULES}


def get_rule(issue_type: SecurityIssueType) -> SecurityRule | None:
    """Look up a rule by its catalogue tag."""
    return _RULE_INDEX.get(issue_type)


def get_rules_by_severity(severity: Severity) -> list[SecurityRule]:
    return [r for r in SECURITY_RULES if r.severity == severity]
