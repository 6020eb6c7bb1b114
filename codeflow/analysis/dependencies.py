"""Dependency extraction: imports, exports, declarations, outbound calls.

Everything is reported in document order. Imports combine ES-module
``import`` statements, CommonJS ``require('x')`` calls and dynamic
``import('x')`` in a single pass, so ``import a from 'x'`` followed by
``require('y')`` yields ``['x', 'y']``.
"""

from __future__ import annotations

import logging
import re

from .faults import isolate_faults
from .functions import collect_functions, infer_value_type
from .models import ApiCall, DatabaseOperation, DependencyReport, VariableRecord
from .query import pattern, query
from .syntax_tree import (
    BLOCK_KIND,
    CALL_KIND,
    FUNCTION_KINDS,
    IMPORT_KIND,
    STRING_KIND,
    TEMPLATE_KIND,
    Node,
    SyntaxTree,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_MONGO_METHOD_RE = re.compile(r"find|findOne|insert|update|delete|aggregate")

# Checked in this order; the first keyword present names the operation
SQL_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE", "CREATE", "DROP")


def first_argument(call: Node) -> Node | None:
    """First non-comment argument of a call or ``new`` expression."""
    arguments = call.child("arguments")
    if arguments is None:
        return None
    for arg in arguments.named_children:
        if arg.kind != "comment":
            return arg
    return None


def _call_arguments(call: Node) -> list[Node]:
    arguments = call.child("arguments")
    if arguments is None:
        return []
    return [a for a in arguments.named_children if a.kind != "comment"]


def _has_string_argument(node: Node, _tree: SyntaxTree) -> bool:
    arg = first_argument(node)
    return arg is not None and arg.kind == STRING_KIND


def _is_sql_literal(node: Node, _tree: SyntaxTree) -> bool:
    value = node.literal.value if node.literal is not None else None
    return isinstance(value, str) and any(k in value for k in SQL_KEYWORDS)


IMPORT_SOURCE_PATTERN = (
    pattern(IMPORT_KIND, source=pattern(STRING_KIND))
    | pattern(CALL_KIND, function=pattern("identifier", text="require"), where=_has_string_argument)
    | pattern(CALL_KIND, function=pattern("import"), where=_has_string_argument)
)

EXPORT_PATTERN = pattern("export_statement")

DECLARATOR_PATTERN = pattern("variable_declarator")

API_CALL_PATTERN = pattern(CALL_KIND, function=pattern("identifier", text="fetch")) | pattern(
    CALL_KIND,
    function=pattern("member_expression", object=pattern("identifier", text="axios")),
)

MONGO_CALL_PATTERN = pattern(
    CALL_KIND,
    function=pattern("member_expression", property=pattern(regex=_MONGO_METHOD_RE.pattern)),
)

SQL_LITERAL_PATTERN = pattern(STRING_KIND, where=_is_sql_literal)

_BINDING_KINDS = frozenset({"identifier", "shorthand_property_identifier_pattern"})

_BLOCK_KINDS = frozenset({BLOCK_KIND})

# Roles inside destructuring patterns that hold expressions, not bindings
_NON_BINDING_ROLES = frozenset({"right", "key"})


# ---------------------------------------------------------------------------
# Imports / exports
# ---------------------------------------------------------------------------


def import_sources(tree: SyntaxTree) -> list[tuple[str, Node]]:
    """Return ``(module_source, node)`` for every import, in document order."""
    sources: list[tuple[str, Node]] = []
    for node in query(tree, IMPORT_SOURCE_PATTERN):
        literal_node = node.child("source") if node.kind == IMPORT_KIND else first_argument(node)
        if literal_node is None or literal_node.literal is None:
            continue
        sources.append((str(literal_node.literal.value), node))
    return sources


def _declared_names(tree: SyntaxTree, declaration: Node) -> list[str]:
    name = declaration.child("name")
    if name is not None:
        return [tree.text_of(name)]
    names: list[str] = []
    for declarator in declaration.named_children:
        if declarator.kind == "variable_declarator":
            target = declarator.child("name")
            if target is not None:
                names.extend(bound_identifiers(tree, target))
    return names


def extract_exports(tree: SyntaxTree) -> list[str]:
    """Names bound by exported declarations and export lists."""
    exports: list[str] = []
    for statement in query(tree, EXPORT_PATTERN):
        declaration = statement.child("declaration")
        if declaration is not None:
            exports.extend(_declared_names(tree, declaration))
            continue

        value = statement.child("value")
        if value is not None:
            # export default function named() {} / class Named {}
            name = value.child("name")
            if name is not None:
                exports.append(tree.text_of(name))
            continue

        for clause in statement.named_children:
            if clause.kind != "export_clause":
                continue
            for specifier in clause.named_children:
                if specifier.kind != "export_specifier":
                    continue
                exported = specifier.child("alias") or specifier.child("name")
                if exported is not None:
                    exports.append(tree.text_of(exported))
    return exports


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


def bound_identifiers(tree: SyntaxTree, target: Node) -> list[str]:
    """Identifiers bound by a declarator target, including destructuring."""
    if target.kind == "identifier":
        return [tree.text_of(target)]

    names: list[str] = []
    stack = [target]
    while stack:
        node = stack.pop()
        if node.kind in _BINDING_KINDS:
            names.append(tree.text_of(node))
            continue
        skipped = {id(c) for role in _NON_BINDING_ROLES for c in node.children_of(role)}
        stack.extend(c for c in reversed(node.children) if id(c) not in skipped)
    return names


def determine_scope(tree: SyntaxTree, node: Node) -> str:
    """``function`` anywhere inside a function, else ``block`` inside a
    block statement, else ``global``."""
    if tree.enclosing(node, FUNCTION_KINDS) is not None:
        return "function"
    if tree.enclosing(node, _BLOCK_KINDS) is not None:
        return "block"
    return "global"


def extract_variables(tree: SyntaxTree) -> list[VariableRecord]:
    variables: list[VariableRecord] = []
    for declarator in query(tree, DECLARATOR_PATTERN):
        target = declarator.child("name")
        if target is None:
            continue
        scope = determine_scope(tree, declarator)
        if target.kind == "identifier":
            var_type = infer_value_type(tree, declarator.child("value"))
            variables.append(
                VariableRecord(name=tree.text_of(target), type=var_type, scope=scope, line=declarator.line)
            )
            continue
        for name in bound_identifiers(tree, target):
            variables.append(VariableRecord(name=name, type="unknown", scope=scope, line=declarator.line))
    return variables


# ---------------------------------------------------------------------------
# Outbound calls
# ---------------------------------------------------------------------------


def extract_endpoint(call: Node) -> str:
    arg = first_argument(call)
    if arg is not None and arg.kind == STRING_KIND and arg.literal is not None:
        return str(arg.literal.value)
    if arg is not None and arg.kind == TEMPLATE_KIND:
        return "template_literal"
    return "dynamic"


def extract_http_method(tree: SyntaxTree, call: Node) -> str:
    """``method`` from a fetch options object, ``GET`` when absent."""
    args = _call_arguments(call)
    if len(args) < 2 or args[1].kind != "object":
        return "GET"
    for prop in args[1].named_children:
        if prop.kind != "pair":
            continue
        key = prop.child("key")
        value = prop.child("value")
        if key is None or tree.text_of(key) != "method":
            continue
        if value is not None and value.kind == STRING_KIND and value.literal is not None:
            return str(value.literal.value)
    return "GET"


def extract_api_calls(tree: SyntaxTree) -> list[ApiCall]:
    calls: list[ApiCall] = []
    for call in query(tree, API_CALL_PATTERN):
        callee = call.child("function")
        is_fetch = callee is not None and callee.kind == "identifier"
        calls.append(
            ApiCall(
                type="fetch" if is_fetch else "axios",
                endpoint=extract_endpoint(call),
                method=extract_http_method(tree, call) if is_fetch else "unknown",
                line=call.line,
            )
        )
    return calls


def extract_database_operations(tree: SyntaxTree) -> list[DatabaseOperation]:
    """MongoDB-style method calls first, then SQL-looking string literals."""
    operations: list[DatabaseOperation] = []
    for call in query(tree, MONGO_CALL_PATTERN):
        member = call.child("function")
        prop = member.child("property") if member is not None else None
        if prop is None:
            continue
        operations.append(
            DatabaseOperation(type="MongoDB", operation=tree.text_of(prop), target="collection", line=call.line)
        )

    for literal in query(tree, SQL_LITERAL_PATTERN):
        value = str(literal.literal.value) if literal.literal is not None else ""
        keyword = next(k for k in SQL_KEYWORDS if k in value)
        operations.append(DatabaseOperation(type="SQL", operation=keyword, target="unknown", line=literal.line))
    return operations


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


@isolate_faults("dependencies", DependencyReport)
def extract_dependencies(tree: SyntaxTree) -> DependencyReport:
    """Collect the dependency report for a parsed file."""
    report = DependencyReport(
        imports=[source for source, _ in import_sources(tree)],
        exports=extract_exports(tree),
        functions=collect_functions(tree, named_only=True),
        variables=extract_variables(tree),
        api_calls=extract_api_calls(tree),
        database_operations=extract_database_operations(tree),
    )
    logger.debug(
        "Extracted %d imports, %d functions, %d variables",
        len(report.imports),
        len(report.functions),
        len(report.variables),
    )
    return report
