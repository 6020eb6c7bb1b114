"""Language tags and detection."""

from __future__ import annotations

import os
from enum import Enum


class Language(str, Enum):
    """Language tags accepted by the engine.

    Only ``JAVASCRIPT`` and ``TYPESCRIPT`` get syntax-tree analysis; every
    other tag yields a text-only report.
    """

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    JAVA = "java"
    CPP = "cpp"
    C = "c"
    PHP = "php"
    RUBY = "ruby"
    GO = "go"
    RUST = "rust"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: str | None) -> Language:
        """Map a free-form tag to a ``Language``; unknown tags give ``UNKNOWN``."""
        if not tag:
            return cls.UNKNOWN
        normalized = tag.strip().lower()
        normalized = _TAG_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN

    @property
    def has_grammar(self) -> bool:
        return self in (Language.JAVASCRIPT, Language.TYPESCRIPT)


_TAG_ALIASES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
}

EXTENSION_LANGUAGES: dict[str, Language] = {
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".py": Language.PYTHON,
    ".java": Language.JAVA,
    ".cpp": Language.CPP,
    ".c": Language.C,
    ".php": Language.PHP,
    ".rb": Language.RUBY,
    ".go": Language.GO,
    ".rs": Language.RUST,
}

_JAVASCRIPT_MARKERS = ("import ", "export ", "const ", "let ")
_PYTHON_MARKERS = ("def ",)
_JAVA_MARKERS = ("public class", "private ")


def language_from_extension(filename: str | None) -> Language:
    if not filename:
        return Language.UNKNOWN
    _, ext = os.path.splitext(filename)
    return EXTENSION_LANGUAGES.get(ext.lower(), Language.UNKNOWN)


def language_from_code(source_code: str) -> Language:
    """Guess the language from marker substrings, defaulting to JavaScript."""
    if any(marker in source_code for marker in _JAVASCRIPT_MARKERS):
        return Language.JAVASCRIPT
    if any(marker in source_code for marker in _PYTHON_MARKERS):
        return Language.PYTHON
    if any(marker in source_code for marker in _JAVA_MARKERS):
        return Language.JAVA
    return Language.JAVASCRIPT


def detect_language(filename: str | None, source_code: str) -> Language:
    """Resolve a language from the filename extension, then the source."""
    by_extension = language_from_extension(filename)
    if by_extension is not Language.UNKNOWN:
        return by_extension
    return language_from_code(source_code)
