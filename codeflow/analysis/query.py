"""Structural queries over a ``SyntaxTree``.

A ``NodePattern`` selects nodes by kind (any of a set) and optionally by
constraints on their children, their text, an arbitrary predicate, or an
enclosing ancestor. Patterns combine with ``|`` so one traversal can
answer several structural checks at once.

Usage::

    eval_calls = query(tree, pattern(
        "call_expression",
        function=pattern("identifier", text="eval"),
    ))

    decisions = query(tree, pattern("if_statement", "while_statement")
                      | pattern("binary_expression",
                                operator=pattern("&&", "||")))
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from .syntax_tree import Node, SyntaxTree


@dataclass(frozen=True)
class NodePattern:
    """Selects nodes by kind and optional constraints.

    Attributes:
        kinds: Accepted node kinds. Empty means any kind.
        text: Exact source text the node must have.
        text_pattern: Regex the node's source text must contain.
        fields: ``(role, pattern)`` pairs; the first child filling each
            role must exist and match the pattern.
        predicate: Extra check receiving ``(node, tree)``.
        inside: Pattern some ancestor of the node must match.
    """

    kinds: frozenset[str] = frozenset()
    text: str | None = None
    text_pattern: re.Pattern[str] | None = None
    fields: tuple[tuple[str, NodePattern | AnyOf], ...] = ()
    predicate: Callable[[Node, SyntaxTree], bool] | None = field(default=None, compare=False)
    inside: NodePattern | AnyOf | None = None

    def matches(self, node: Node, tree: SyntaxTree) -> bool:
        if self.kinds and node.kind not in self.kinds:
            return False
        if self.text is not None or self.text_pattern is not None:
            node_text = tree.text_of(node)
            if self.text is not None and node_text != self.text:
                return False
            if self.text_pattern is not None and not self.text_pattern.search(node_text):
                return False
        for role, sub_pattern in self.fields:
            child = node.child(role)
            if child is None or not sub_pattern.matches(child, tree):
                return False
        if self.inside is not None:
            if not any(self.inside.matches(a, tree) for a in tree.ancestors(node)):
                return False
        if self.predicate is not None and not self.predicate(node, tree):
            return False
        return True

    def __or__(self, other: NodePattern | AnyOf) -> AnyOf:
        return AnyOf((self,)) | other


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of patterns: matches when any member matches."""

    patterns: tuple[NodePattern | AnyOf, ...]

    def matches(self, node: Node, tree: SyntaxTree) -> bool:
        return any(p.matches(node, tree) for p in self.patterns)

    def __or__(self, other: NodePattern | AnyOf) -> AnyOf:
        others = other.patterns if isinstance(other, AnyOf) else (other,)
        return AnyOf(self.patterns + others)


Pattern = NodePattern | AnyOf


def pattern(
    *kinds: str,
    text: str | None = None,
    regex: str | None = None,
    where: Callable[[Node, SyntaxTree], bool] | None = None,
    inside: Pattern | None = None,
    **fields: Pattern,
) -> NodePattern:
    """Build a ``NodePattern``.

    Keyword arguments other than the named ones are field constraints,
    e.g. ``pattern("member_expression", property=pattern(text="innerHTML"))``.
    """
    return NodePattern(
        kinds=frozenset(kinds),
        text=text,
        text_pattern=re.compile(regex) if regex is not None else None,
        fields=tuple(fields.items()),
        predicate=where,
        inside=inside,
    )


def query(
    tree: SyntaxTree,
    node_pattern: Pattern,
    root: Node | None = None,
    prune: Pattern | None = None,
) -> list[Node]:
    """Return every node matching *node_pattern*, in document order.

    Args:
        tree: The tree to search.
        node_pattern: Pattern to match.
        root: Subtree to search instead of the whole tree. The root itself
            is tested.
        prune: Nodes matching this pattern (other than *root*) are skipped
            together with their subtrees.

    Returns:
        Matching nodes in pre-order. Empty when nothing matches.
    """
    start = root if root is not None else tree.root
    matches: list[Node] = []
    stack = [start]
    while stack:
        node = stack.pop()
        if node is not start and prune is not None and prune.matches(node, tree):
            continue
        if node_pattern.matches(node, tree):
            matches.append(node)
        stack.extend(reversed(node.children))
    return matches


def query_first(tree: SyntaxTree, node_pattern: Pattern, root: Node | None = None) -> Node | None:
    for node in tree.walk(root):
        if node_pattern.matches(node, tree):
            return node
    return None
