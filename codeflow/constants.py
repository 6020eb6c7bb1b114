"""Constants and configuration values for CodeFlow.

This module centralizes magic numbers and configuration values
that are used across the codebase for easier maintenance.
"""

import os
import re

from .core.exceptions import InvalidConfigError


def _int_setting(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise InvalidConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {value}")
    return value


# =============================================================================
# Input Limits
# =============================================================================

# Maximum accepted source size in bytes (10MB, same as the upload limit)
MAX_SOURCE_BYTES = _int_setting("CODEFLOW_MAX_SOURCE_BYTES", 10 * 1024 * 1024)


# =============================================================================
# Logging / Server
# =============================================================================

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_LEVEL = os.environ.get("CODEFLOW_LOG_LEVEL", "INFO").upper()
if LOG_LEVEL not in _LOG_LEVELS:
    raise InvalidConfigError(f"CODEFLOW_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {LOG_LEVEL!r}")
LOG_FILE = os.environ.get("CODEFLOW_LOG_FILE") or None
LOG_CONSOLE = os.environ.get("CODEFLOW_LOG_CONSOLE", "false").lower() == "true"

MCP_PORT = _int_setting("MCP_PORT", 3000)


# =============================================================================
# Security Scoring
# =============================================================================

# Every file starts with a perfect score; findings only deduct
SECURITY_BASE_SCORE = 5.0
SECURITY_MIN_SCORE = 0.0

# Code snippets attached to findings are truncated to this many characters
MAX_SNIPPET_LENGTH = 200

# Hardcoded-credential literals must be longer than this
CREDENTIAL_MIN_LENGTH = 8


# =============================================================================
# Complexity Metrics
# =============================================================================

HALSTEAD_OPERATOR_RE = re.compile(r"[+\-*/=<>!&|%^~?:;,.(){}\[\]]")
HALSTEAD_OPERAND_RE = re.compile(r"[a-zA-Z_$][a-zA-Z0-9_$]*")

# Maintainability index: 171 - 5.2 ln(V) - 0.23 CC - 16.2 ln(LOC)
MI_BASE = 171.0
MI_VOLUME_WEIGHT = 5.2
MI_COMPLEXITY_WEIGHT = 0.23
MI_LOC_WEIGHT = 16.2


# =============================================================================
# Comparison Risk Thresholds
# =============================================================================

RISK_COMPLEXITY_WEIGHT = 0.5
RISK_SECURITY_WEIGHT = 2.0
RISK_NEW_ISSUE_WEIGHT = 1.0
RISK_CRITICAL_THRESHOLD = 5.0
RISK_HIGH_THRESHOLD = 3.0
RISK_MEDIUM_THRESHOLD = 1.0
