"""Fault isolation for analyzers.

An analyzer that raises on an unexpected tree shape must not take the
whole report down with it: the wrapped function logs the fault and
returns the analyzer's empty result instead.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from ..logging_config import get_analysis_logger

P = ParamSpec("P")
T = TypeVar("T")


def isolate_faults(analyzer: str, default: Callable[[], T]) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorate an analyzer so any exception yields ``default()``.

    Args:
        analyzer: Name recorded in the ``analyzer_fault`` log event.
        default: Factory for the analyzer's zero-value result.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                get_analysis_logger().warning(
                    "ANALYZER_FAULT",
                    exc_info=True,
                    extra={"event": "analyzer_fault", "analyzer": analyzer, "error": str(e)},
                )
                return default()

        return wrapper

    return decorator
