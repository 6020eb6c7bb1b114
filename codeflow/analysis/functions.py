"""Function discovery and description shared by the complexity and
dependency analyzers.

Decision points are attributed to their innermost enclosing function:
scoring a function never descends into functions nested inside it.
"""

from __future__ import annotations

import re

from .models import FunctionRecord
from .query import pattern, query
from .syntax_tree import BLOCK_KIND, FUNCTION_KINDS, Node, SyntaxTree

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

DECISION_POINTS = pattern(
    "if_statement",
    "while_statement",
    "for_statement",
    "for_in_statement",
    "switch_case",
    "switch_default",
    "ternary_expression",
    "catch_clause",
) | pattern("binary_expression", operator=pattern("&&", "||"))

FUNCTION_PATTERN = pattern(*FUNCTION_KINDS)

RETURN_PATTERN = pattern("return_statement")

_KIND_LABELS = {
    "function_declaration": "function",
    "function_expression": "function",
    "arrow_function": "arrow",
    "method_definition": "method",
    "generator_function_declaration": "generator",
    "generator_function": "generator",
}

_ASYNC_RE = re.compile(r"\basync\b")

# Initializer shape -> inferred type (see infer_value_type)
_VALUE_TYPES = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
    "null": "object",
    "regex": "object",
    "array": "array",
    "object": "object",
    "function_expression": "function",
    "arrow_function": "function",
    "generator_function": "function",
}


# ---------------------------------------------------------------------------
# Complexity
# ---------------------------------------------------------------------------


def count_decision_points(tree: SyntaxTree, root: Node | None = None, scoped: bool = False) -> int:
    """Count decision points under *root* (whole tree by default).

    With ``scoped=True`` nested functions below *root* are skipped.
    """
    prune = FUNCTION_PATTERN if scoped else None
    return len(query(tree, DECISION_POINTS, root=root, prune=prune))


def function_complexity(tree: SyntaxTree, func: Node) -> int:
    """Cyclomatic complexity of *func*'s own body."""
    body = func.child("body")
    if body is None or body.kind in FUNCTION_KINDS:
        return 1
    return 1 + count_decision_points(tree, root=body, scoped=True)


# ---------------------------------------------------------------------------
# Description helpers
# ---------------------------------------------------------------------------


def function_name(tree: SyntaxTree, func: Node) -> str:
    """Declared name, else the name of the variable it initializes."""
    name_node = func.child("name")
    if name_node is not None:
        return tree.text_of(name_node)

    parent = tree.parent(func)
    if parent is not None and parent.kind == "variable_declarator":
        target = parent.child("name")
        if target is not None and target.kind == "identifier" and parent.child("value") is func:
            return tree.text_of(target)
    return "anonymous"


def is_async(tree: SyntaxTree, func: Node) -> bool:
    """Check whether the function's header carries the ``async`` keyword."""
    marker = func.child("name") or func.child("parameters") or func.child("parameter")
    end = marker.span.start_byte if marker is not None else func.span.end_byte
    header = tree.text_between(func.span.start_byte, end)
    return bool(_ASYNC_RE.search(header))


def parameters(tree: SyntaxTree, func: Node) -> list[tuple[str, str]]:
    """Return ``(name, inferred_type)`` per parameter.

    Handles plain identifiers, typed parameters (TypeScript), default
    values, rest parameters and destructuring (reported by pattern kind).
    """
    single = func.child("parameter")
    if single is not None:
        return [(tree.text_of(single), "unknown")]

    params_node = func.child("parameters")
    if params_node is None:
        return []

    result: list[tuple[str, str]] = []
    for param in params_node.named_children:
        if param.kind == "comment":
            continue
        result.append(_describe_parameter(tree, param))
    return result


def _describe_parameter(tree: SyntaxTree, param: Node) -> tuple[str, str]:
    if param.kind in ("required_parameter", "optional_parameter"):
        target = param.child("pattern")
        annotation = param.child("type")
        default = param.child("value")
        if annotation is not None:
            param_type = tree.text_of(annotation).lstrip(":").strip()
        elif default is not None:
            param_type = infer_value_type(tree, default)
        else:
            param_type = "unknown"
        name = _binding_name(tree, target) if target is not None else param.kind
        return name, param_type

    if param.kind == "assignment_pattern":
        left = param.child("left")
        right = param.child("right")
        name = _binding_name(tree, left) if left is not None else param.kind
        return name, infer_value_type(tree, right) if right is not None else "unknown"

    return _binding_name(tree, param), "unknown"


def _binding_name(tree: SyntaxTree, target: Node) -> str:
    if target.kind == "identifier":
        return tree.text_of(target)
    if target.kind == "rest_pattern":
        inner = target.named_children
        if inner and inner[0].kind == "identifier":
            return f"...{tree.text_of(inner[0])}"
    return target.kind


def infer_return_type(tree: SyntaxTree, func: Node) -> str:
    """``"void"`` if the function's own body never returns, else ``"mixed"``.

    Expression-bodied arrow functions always produce a value.
    """
    body = func.child("body")
    if body is None:
        return "void"
    if body.kind != BLOCK_KIND:
        return "mixed"
    returns = query(tree, RETURN_PATTERN, root=body, prune=FUNCTION_PATTERN)
    return "mixed" if returns else "void"


def infer_value_type(tree: SyntaxTree, value: Node | None) -> str:
    """Infer a coarse type category from an initializer's syntactic shape."""
    if value is None:
        return "undefined"
    while value.kind == "parenthesized_expression" and value.named_children:
        value = value.named_children[0]
    if value.kind == "identifier" and tree.text_of(value) == "undefined":
        return "undefined"
    return _VALUE_TYPES.get(value.kind, "unknown")


def describe_function(tree: SyntaxTree, func: Node) -> FunctionRecord:
    params = parameters(tree, func)
    return FunctionRecord(
        name=function_name(tree, func),
        line=func.line,
        complexity=function_complexity(tree, func),
        parameters=[name for name, _ in params],
        parameter_types=[param_type for _, param_type in params],
        return_type=infer_return_type(tree, func),
        kind=_KIND_LABELS.get(func.kind, "function"),
        is_async=is_async(tree, func),
    )


def collect_functions(tree: SyntaxTree, named_only: bool = False) -> list[FunctionRecord]:
    """Describe every function-like node in document order."""
    records = [describe_function(tree, func) for func in query(tree, FUNCTION_PATTERN)]
    if named_only:
        records = [r for r in records if r.name != "anonymous"]
    return records
