"""CodeFlow: static analysis engine for JavaScript and TypeScript sources."""

__version__ = "0.1.0"
