"""Immutable syntax tree used by every analyzer.

The parser converts a tree-sitter parse tree into ``Node`` objects once;
analyzers never touch tree-sitter directly. Nodes carry no parent pointer.
Parent lookups go through the ``SyntaxTree``'s parent index, which is built
in a single pass when the tree is constructed.

Usage::

    tree = SourceParser().parse("const x = 1;", language="javascript")
    for node in tree.walk():
        print(node.kind, node.span.start_line)
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

# ---------------------------------------------------------------------------
# Node kinds shared across analyzers
# ---------------------------------------------------------------------------

FUNCTION_KINDS = frozenset({
    "function_declaration",
    "function_expression",
    "arrow_function",
    "generator_function_declaration",
    "generator_function",
    "method_definition",
})

IMPORT_KIND = "import_statement"
CALL_KIND = "call_expression"
STRING_KIND = "string"
TEMPLATE_KIND = "template_string"
REGEX_KIND = "regex"
BLOCK_KIND = "statement_block"
PROGRAM_KIND = "program"
COMMENT_KIND = "comment"

LITERAL_KINDS = frozenset({
    STRING_KIND,
    TEMPLATE_KIND,
    REGEX_KIND,
    "number",
    "true",
    "false",
    "null",
})

_EMPTY_FIELDS: Mapping[str, tuple[Node, ...]] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Span:
    """Source location of a node.

    Attributes:
        start_line: 1-based first line.
        end_line: 1-based last line.
        start_column: 0-based column of the first character.
        start_byte: Byte offset of the first character in the UTF-8 source.
        end_byte: Byte offset one past the last character.
    """

    start_line: int
    end_line: int
    start_column: int
    start_byte: int
    end_byte: int

    def contains(self, other: Span) -> bool:
        return self.start_byte <= other.start_byte and other.end_byte <= self.end_byte


@dataclass(frozen=True, slots=True)
class Literal:
    """Literal payload attached to string, number, boolean, null, regex and
    template nodes.

    ``value`` is the resolved run-time value where one can be computed
    statically: the unquoted string, the number, the boolean, ``None`` for
    ``null``, the pattern source for a regex. Template strings with
    substitutions have no static value.
    """

    raw: str
    value: str | int | float | bool | None
    type_tag: str
    regex_flags: str | None = None


@dataclass(frozen=True, slots=True, eq=False)
class Node:
    """A single syntax node.

    Nodes compare by identity: two ``if`` statements with the same text
    are different nodes. The parent index is keyed on ``id(node)``.

    Attributes:
        kind: Grammar node type (``"if_statement"``, ``"call_expression"``...).
        span: Source location.
        children: Retained children in source order (named nodes plus
            anonymous tokens that fill a grammar field, such as operators).
        fields: Mapping from role name to the children filling that role.
        named: False for anonymous grammar tokens (operators, keywords).
        text: Source text, kept for leaf nodes only.
        literal: Literal payload, for literal kinds only.
    """

    kind: str
    span: Span
    children: tuple[Node, ...] = ()
    fields: Mapping[str, tuple[Node, ...]] = field(default_factory=lambda: _EMPTY_FIELDS)
    named: bool = True
    text: str | None = None
    literal: Literal | None = None

    def child(self, role: str) -> Node | None:
        """Return the first child filling *role*, or ``None``."""
        nodes = self.fields.get(role)
        return nodes[0] if nodes else None

    def children_of(self, role: str) -> tuple[Node, ...]:
        return self.fields.get(role, ())

    @property
    def line(self) -> int:
        return self.span.start_line

    @property
    def named_children(self) -> tuple[Node, ...]:
        """Children excluding anonymous punctuation/operator tokens."""
        return tuple(c for c in self.children if c.named)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain nested dictionary (no back-references)."""
        data: dict[str, Any] = {
            "kind": self.kind,
            "start_line": self.span.start_line,
            "end_line": self.span.end_line,
            "start_byte": self.span.start_byte,
            "end_byte": self.span.end_byte,
        }
        if self.text is not None:
            data["text"] = self.text
        if self.literal is not None:
            data["literal"] = {
                "raw": self.literal.raw,
                "value": self.literal.value,
                "type": self.literal.type_tag,
            }
        roles = {id(c): role for role, nodes in self.fields.items() for c in nodes}
        if self.children:
            data["children"] = [
                {**c.to_dict(), "role": roles[id(c)]} if id(c) in roles else c.to_dict()
                for c in self.children
            ]
        return data


class SyntaxTree:
    """A parsed source file: the root ``Node`` plus lookup helpers.

    Attributes:
        root: The ``program`` node.
        source_code: Original source string that was parsed.
        grammar: Grammar that produced the tree (``"javascript"``,
            ``"typescript"`` or ``"tsx"``).
    """

    __slots__ = ("root", "source_code", "grammar", "_source_bytes", "_parents")

    def __init__(self, root: Node, source_code: str, grammar: str) -> None:
        self.root = root
        self.source_code = source_code
        self.grammar = grammar
        self._source_bytes: bytes = source_code.encode("utf-8")
        self._parents: dict[int, Node] = _build_parent_index(root)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def walk(self, start: Node | None = None) -> Iterator[Node]:
        """Yield nodes in pre-order (document order) starting at *start*."""
        stack = [start if start is not None else self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def parent(self, node: Node) -> Node | None:
        return self._parents.get(id(node))

    def ancestors(self, node: Node) -> Iterator[Node]:
        """Yield ancestors of *node*, nearest first."""
        current = self._parents.get(id(node))
        while current is not None:
            yield current
            current = self._parents.get(id(current))

    def enclosing(self, node: Node, kinds: frozenset[str]) -> Node | None:
        """Return the nearest ancestor whose kind is in *kinds*."""
        for ancestor in self.ancestors(node):
            if ancestor.kind in kinds:
                return ancestor
        return None

    # ------------------------------------------------------------------
    # Text access
    # ------------------------------------------------------------------

    def text_of(self, node: Node) -> str:
        """Extract the source text spanned by *node*."""
        if node.text is not None:
            return node.text
        return self.text_between(node.span.start_byte, node.span.end_byte)

    def text_between(self, start_byte: int, end_byte: int) -> str:
        return self._source_bytes[start_byte:end_byte].decode("utf-8", errors="replace")

    @property
    def comments(self) -> list[Node]:
        return [n for n in self.walk() if n.kind == COMMENT_KIND]

    def to_dict(self) -> dict[str, Any]:
        return {"grammar": self.grammar, "root": self.root.to_dict()}

    def __len__(self) -> int:
        return len(self._parents) + 1


def _build_parent_index(root: Node) -> dict[int, Node]:
    parents: dict[int, Node] = {}
    stack = [root]
    while stack:
        node = stack.pop()
        for child in node.children:
            parents[id(child)] = node
            stack.append(child)
    return parents
