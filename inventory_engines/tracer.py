"""
``@traced_engine``: one INVENTORY_ENGINE_TRACE log record per engine call.

The record names the engine and its version, and carries a short
fingerprint of the keyword arguments that shape the result. Two alert
listings built with the same ``severity`` and ``include_overstock`` share
a fingerprint, whatever stock they were given. The engines stay pure: the
decorator only logs.

    @traced_engine("alerts", "1.0", fingerprint_fields=("severity", "include_overstock"))
    def build_alert_report(items, *, severity=None, include_overstock=True): ...
"""

from __future__ import annotations

import functools
import hashlib
import json
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from inventory_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])

TRACE_EVENT = "INVENTORY_ENGINE_TRACE"


def _fingerprint_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def input_fingerprint(fields: tuple[str, ...], kwargs: dict[str, Any]) -> str:
    """First 16 hex chars of SHA-256 over the selected kwargs (absent ones as null)."""
    selected = {name: _fingerprint_value(kwargs.get(name)) for name in fields}
    canonical = json.dumps(selected, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            _logger.info(
                TRACE_EVENT,
                extra={
                    "trace_type": TRACE_EVENT,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields else "",
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
