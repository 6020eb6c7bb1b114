"""Core utilities: the exception hierarchy shared by the engine and server."""

from .exceptions import (
    AnalysisError,
    CodeFlowError,
    ConfigurationError,
    InvalidConfigError,
    InvalidInputError,
    ParseError,
    SourceTooLargeError,
    UnsupportedLanguageError,
    ValidationError,
)

__all__ = [
    "CodeFlowError",
    "AnalysisError",
    "ParseError",
    "ValidationError",
    "InvalidInputError",
    "SourceTooLargeError",
    "UnsupportedLanguageError",
    "ConfigurationError",
    "InvalidConfigError",
]
