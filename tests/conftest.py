"""Shared fixtures for the analysis engine tests."""

import logging

import pytest

from codeflow.analysis.engine import CodeAnalysisEngine
from codeflow.analysis.parser import SourceParser
from codeflow.analysis.syntax_tree import SyntaxTree
from codeflow.logging_config import ANALYSIS_LOGGER_NAME


@pytest.fixture
def parser():
    """Create a SourceParser instance."""
    return SourceParser()


@pytest.fixture
def engine():
    """Create a CodeAnalysisEngine instance."""
    return CodeAnalysisEngine()


@pytest.fixture
def parse(parser):
    """Parse helper returning a SyntaxTree for JavaScript by default."""

    def _parse(code: str, language: str = "javascript", filename: str | None = None) -> SyntaxTree:
        return parser.parse(code, language=language, filename=filename)

    return _parse


@pytest.fixture(autouse=True)
def reset_analysis_logger():
    """Undo handler/propagation changes made by configure_analysis_logging."""
    logger = logging.getLogger(ANALYSIS_LOGGER_NAME)
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.propagate = propagate
    logger.setLevel(level)
