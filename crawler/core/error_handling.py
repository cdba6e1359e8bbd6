"""
Error handling for the rules engine.

The engine never raises for control flow. The handler here records failures
the engine survives but does not own, such as a state-change listener that
raises, and the validators coerce caller-supplied integers into safe ranges.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from catchery import log_warning

from core.logging import format_context, get_logger

T = TypeVar("T")


class ErrorSeverity(Enum):
    """How badly a failure affects the run."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def log_level(self) -> int:
        return {
            ErrorSeverity.LOW: logging.INFO,
            ErrorSeverity.MEDIUM: logging.WARNING,
            ErrorSeverity.HIGH: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL,
        }[self]


@dataclass
class EngineError:
    """A recorded failure."""

    message: str
    severity: ErrorSeverity
    context: dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def __str__(self) -> str:
        return format_context(f"{self.severity.name}: {self.message}", self.context)


class ErrorHandler:
    """
    Keeps the history of the failures it is given and logs each one.

    Failures from HIGH upwards carry the traceback of their exception.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger("errors")
        self.error_history: list[EngineError] = []

    def handle(
        self,
        message: str,
        severity: ErrorSeverity,
        context: Optional[dict[str, Any]] = None,
        exception: Optional[Exception] = None,
    ) -> EngineError:
        error = EngineError(message, severity, dict(context or {}), exception)
        self.error_history.append(error)
        with_traceback = exception is not None and severity in (
            ErrorSeverity.HIGH,
            ErrorSeverity.CRITICAL,
        )
        self.logger.log(
            severity.log_level,
            str(error),
            exc_info=exception if with_traceback else None,
        )
        return error

    def safe_execute(
        self,
        operation: Callable[[], T],
        default: T,
        error_message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[dict[str, Any]] = None,
    ) -> T:
        """Runs an operation, returning the default if it raises."""
        try:
            return operation()
        except Exception as e:
            self.handle(f"{error_message}: {e}", severity, context, e)
            return default

    def errors_at_least(self, severity: ErrorSeverity) -> list[EngineError]:
        """Returns the recorded failures at or above a severity."""
        order = list(ErrorSeverity)
        return [
            error
            for error in self.error_history
            if order.index(error.severity) >= order.index(severity)
        ]

    def clear(self) -> None:
        self.error_history.clear()


# Shared handler used when a component is not given its own.
ERROR_HANDLER = ErrorHandler()


# ==============================================================================
# VALIDATORS
# ==============================================================================


def ensure_int_in_range(
    value: Any,
    param_name: str,
    min_val: int,
    max_val: Optional[int] = None,
    default: Optional[int] = None,
    context: Optional[dict[str, Any]] = None,
) -> int:
    """
    Coerces a value into an integer in `[min_val, max_val]`.

    Numbers outside the range are clamped and floats are truncated; anything
    else (booleans included) becomes the default, which is `min_val` unless
    given. Every correction is logged as a warning.

    Args:
        value (Any): The value to check.
        param_name (str): The name used in the warning.
        min_val (int): The lowest accepted value.
        max_val (Optional[int]): The highest accepted value, if any.
        default (Optional[int]): The fallback for non-numeric values.
        context (Optional[dict[str, Any]]): Extra context for the warning.

    Returns:
        int: The value, or its correction.

    """
    valid = (
        isinstance(value, int)
        and not isinstance(value, bool)
        and value >= min_val
        and (max_val is None or value <= max_val)
    )
    if valid:
        return value

    bounds = f">= {min_val}" if max_val is None else f"in [{min_val}, {max_val}]"
    log_warning(
        f"{param_name} must be an integer {bounds}, got: {value!r}",
        {**(context or {}), "param_name": param_name, "value": value},
    )
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return min_val if default is None else default
    corrected = max(min_val, int(value))
    return corrected if max_val is None else min(max_val, corrected)


def ensure_non_negative_int(
    value: Any,
    param_name: str,
    default: int = 0,
    context: Optional[dict[str, Any]] = None,
) -> int:
    """Coerces a value into an integer no lower than zero."""
    return ensure_int_in_range(value, param_name, 0, default=default, context=context)
