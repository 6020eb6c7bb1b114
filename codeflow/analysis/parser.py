"""Source parser for JavaScript and TypeScript.

Wraps tree-sitter: the grammar named by the language tag is tried first,
then a more permissive sibling grammar. A parse only counts as successful
when the resulting tree has no error or missing nodes. The tree-sitter
tree is converted into the engine's own immutable ``Node`` tree so nothing
downstream depends on tree-sitter objects.

Usage::

    parser = SourceParser()
    tree = parser.parse("import x from 'y';", language="typescript")
"""

from __future__ import annotations

import codecs
import logging
from functools import cache
from types import MappingProxyType

import tree_sitter as ts
import tree_sitter_javascript as ts_js
import tree_sitter_typescript as ts_ts

from ..core.exceptions import ParseError, UnsupportedLanguageError
from .syntax_tree import (
    LITERAL_KINDS,
    REGEX_KIND,
    STRING_KIND,
    TEMPLATE_KIND,
    Literal,
    Node,
    Span,
    SyntaxTree,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Supported grammars
# ---------------------------------------------------------------------------

_SUPPORTED_GRAMMARS = frozenset({"javascript", "typescript", "tsx"})

# Strict grammar first, permissive sibling second
_GRAMMAR_ATTEMPTS: dict[str, tuple[str, str]] = {
    "javascript": ("javascript", "typescript"),
    "typescript": ("typescript", "tsx"),
    "tsx": ("tsx", "typescript"),
}

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@cache
def _get_language(grammar: str) -> ts.Language:
    """Return (and cache) the tree-sitter ``Language`` for *grammar*.

    Raises:
        UnsupportedLanguageError: If *grammar* is not supported.
    """
    if grammar not in _SUPPORTED_GRAMMARS:
        raise UnsupportedLanguageError(
            f"Unsupported language: {grammar!r}. "
            f"Supported: {', '.join(sorted(_SUPPORTED_GRAMMARS))}"
        )
    if grammar == "javascript":
        return ts.Language(ts_js.language())
    if grammar == "typescript":
        return ts.Language(ts_ts.language_typescript())
    return ts.Language(ts_ts.language_tsx())


def grammar_attempts(language: str, filename: str | None = None) -> tuple[str, str]:
    """Return the ordered pair of grammars to try for *language*.

    A ``.tsx`` filename promotes the TSX grammar for TypeScript input.

    Raises:
        UnsupportedLanguageError: If *language* has no grammar.
    """
    if language not in _GRAMMAR_ATTEMPTS:
        raise UnsupportedLanguageError(
            f"Unsupported language: {language!r}. "
            f"Supported: {', '.join(sorted(_SUPPORTED_GRAMMARS))}"
        )
    if language == "typescript" and filename and filename.lower().endswith(".tsx"):
        return _GRAMMAR_ATTEMPTS["tsx"]
    return _GRAMMAR_ATTEMPTS[language]


class SourceParser:
    """Parses source text into a ``SyntaxTree``.

    The parser holds no per-call state: a fresh tree-sitter ``Parser`` is
    created for every attempt, so one instance can be shared between
    threads.
    """

    def parse(
        self,
        source_code: str,
        language: str = "javascript",
        filename: str | None = None,
    ) -> SyntaxTree:
        """Parse *source_code* into a ``SyntaxTree``.

        Args:
            source_code: The full file contents to parse.
            language: ``"javascript"``, ``"typescript"`` or ``"tsx"``.
            filename: Optional file name used as a grammar hint.

        Returns:
            The converted syntax tree.

        Raises:
            ParseError: If every grammar attempt produced syntax errors.
            UnsupportedLanguageError: If *language* is not supported.
        """
        attempts = grammar_attempts(language, filename)
        source_bytes = source_code.encode("utf-8")
        first_error_line: int | None = None

        for grammar in attempts:
            parser = ts.Parser(_get_language(grammar))
            tree = parser.parse(source_bytes)
            if not tree.root_node.has_error:
                root = _convert(tree.root_node, source_bytes)
                return SyntaxTree(root=root, source_code=source_code, grammar=grammar)

            error_line = _first_error_line(tree.root_node)
            if first_error_line is None:
                first_error_line = error_line
            logger.debug("Grammar %s rejected source (error near line %s)", grammar, error_line)

        raise ParseError(
            f"Parse error near line {first_error_line}: "
            f"source is not valid under {' or '.join(attempts)}",
            attempts=attempts,
            line=first_error_line,
        )


# ---------------------------------------------------------------------------
# Conversion from tree-sitter nodes
# ---------------------------------------------------------------------------


def _convert(ts_root: ts.Node, source_bytes: bytes) -> Node:
    """Convert a tree-sitter tree into ``Node`` objects.

    Post-order with an explicit stack, so very deep expressions do not hit
    the interpreter recursion limit. Anonymous tokens are kept only when
    they fill a grammar field (e.g. the ``operator`` of a binary
    expression).
    """
    results: list[Node] = []
    stack: list[tuple[ts.Node, tuple[str | None, ...] | None]] = [(ts_root, None)]

    while stack:
        ts_node, roles = stack.pop()
        if roles is None:
            kept: list[tuple[ts.Node, str | None]] = []
            for index, child in enumerate(ts_node.children):
                role = ts_node.field_name_for_child(index)
                if child.is_named or role is not None:
                    kept.append((child, role))
            stack.append((ts_node, tuple(role for _, role in kept)))
            for child, _ in reversed(kept):
                stack.append((child, None))
            continue

        count = len(roles)
        if count:
            children = tuple(results[-count:])
            del results[-count:]
        else:
            children = ()
        results.append(_make_node(ts_node, children, roles, source_bytes))

    return results[0]


def _make_node(
    ts_node: ts.Node,
    children: tuple[Node, ...],
    roles: tuple[str | None, ...],
    source_bytes: bytes,
) -> Node:
    span = Span(
        start_line=ts_node.start_point.row + 1,
        end_line=ts_node.end_point.row + 1,
        start_column=ts_node.start_point.column,
        start_byte=ts_node.start_byte,
        end_byte=ts_node.end_byte,
    )

    grouped: dict[str, list[Node]] = {}
    for child, role in zip(children, roles):
        if role is not None:
            grouped.setdefault(role, []).append(child)
    fields = MappingProxyType({role: tuple(nodes) for role, nodes in grouped.items()})

    raw = source_bytes[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="replace")
    literal = _literal_payload(ts_node.type, raw, children, fields) if ts_node.type in LITERAL_KINDS else None

    return Node(
        kind=ts_node.type,
        span=span,
        children=children,
        fields=fields,
        named=ts_node.is_named,
        text=raw if not children else None,
        literal=literal,
    )


def _literal_payload(
    kind: str,
    raw: str,
    children: tuple[Node, ...],
    fields: MappingProxyType,
) -> Literal:
    if kind == STRING_KIND:
        return Literal(raw=raw, value=_string_value(children), type_tag="string")
    if kind == TEMPLATE_KIND:
        if any(c.kind == "template_substitution" for c in children):
            return Literal(raw=raw, value=None, type_tag="template")
        return Literal(raw=raw, value=_string_value(children), type_tag="template")
    if kind == REGEX_KIND:
        pattern = fields.get("pattern", ())
        flags = fields.get("flags", ())
        return Literal(
            raw=raw,
            value=pattern[0].text if pattern else "",
            type_tag="regex",
            regex_flags=flags[0].text if flags else None,
        )
    if kind == "number":
        return Literal(raw=raw, value=_number_value(raw), type_tag="number")
    if kind in ("true", "false"):
        return Literal(raw=raw, value=kind == "true", type_tag="boolean")
    return Literal(raw=raw, value=None, type_tag="null")


def _string_value(children: tuple[Node, ...]) -> str:
    parts: list[str] = []
    for child in children:
        if child.kind == "escape_sequence":
            parts.append(_decode_escape(child.text or ""))
        elif child.kind in ("string_fragment", "html_character_reference"):
            parts.append(child.text or "")
    return "".join(parts)


def _decode_escape(sequence: str) -> str:
    body = sequence[1:]
    if not body:
        return ""
    if body[0] in _SIMPLE_ESCAPES and len(body) == 1:
        return _SIMPLE_ESCAPES[body[0]]
    if body.startswith("u{") and body.endswith("}"):
        try:
            return chr(int(body[2:-1], 16))
        except (ValueError, OverflowError):
            return sequence
    if body[0] in "ux":
        try:
            return codecs.decode(sequence, "unicode_escape")
        except UnicodeDecodeError:
            return sequence
    if body[0] in "\r\n":
        # Line continuation
        return ""
    return body


def _number_value(raw: str) -> int | float | None:
    text = raw.replace("_", "")
    if text.endswith("n"):
        text = text[:-1]
    try:
        return int(text, 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def _first_error_line(root: ts.Node) -> int | None:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point.row + 1
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))
    return None
