"""Custom exception hierarchy for CodeFlow.

This module provides a structured exception hierarchy so callers can tell
a recoverable parse failure apart from rejected input or a broken
configuration.
"""


class CodeFlowError(Exception):
    """Base exception for all CodeFlow errors.

    All custom exceptions should inherit from this class to allow
    callers to catch all CodeFlow-specific errors with a single
    except clause when appropriate.
    """
    pass


# =============================================================================
# Analysis Errors
# =============================================================================

class AnalysisError(CodeFlowError):
    """Base exception for analysis-engine errors."""
    pass


class ParseError(AnalysisError):
    """Every grammar attempt produced a tree with syntax errors.

    The orchestrator recovers from this by switching to the text-pattern
    strategy; it never reaches the caller of ``analyze``.
    """

    def __init__(self, message: str, attempts: tuple[str, ...] = (), line: int | None = None):
        super().__init__(message)
        self.attempts = attempts
        self.line = line


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(CodeFlowError):
    """Base exception for input validation errors."""
    pass


class InvalidInputError(ValidationError):
    """Source text is empty or otherwise unusable for analysis."""
    pass


class SourceTooLargeError(InvalidInputError):
    """Source text exceeds the configured maximum size."""

    def __init__(self, message: str, size: int, limit: int):
        super().__init__(message)
        self.size = size
        self.limit = limit


class UnsupportedLanguageError(ValidationError, ValueError):
    """The parser has no grammar for the requested language."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(CodeFlowError):
    """Base exception for configuration errors."""
    pass


class InvalidConfigError(ConfigurationError):
    """An environment setting is malformed."""
    pass
