"""Error handling utilities for rhodibot.

Two error classes never mix: an :class:`OrchestrationError` means no report
could be produced, while compliance violations are ordinary report content
and are never raised.
"""

from __future__ import annotations

import functools
import time
from typing import Any, Callable, TypeVar

from rhodibot.models.common import AuditError
from rhodibot.utils.logging import get_logger

logger = get_logger("retry")

T = TypeVar("T")


class RhodibotError(Exception):
    """Base exception for rhodibot."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_audit_error(self) -> AuditError:
        """Convert to AuditError model."""
        return AuditError(code=self.code, message=self.message, details=self.details)


class OrchestrationError(RhodibotError):
    """A scan could not produce a report."""


class SnapshotError(OrchestrationError):
    """The repository could not be read into a snapshot.

    Transient read failures are retryable. A root that does not exist is
    not: another attempt would fail the same way.
    """

    def __init__(self, message: str, root: str | None = None, retryable: bool = True):
        details = {"root": root} if root else {}
        super().__init__(message, code="REPOSITORY_UNREADABLE", details=details)
        self.retryable = retryable


class PolicyError(OrchestrationError):
    """The policy pack is malformed. Never retried."""

    def __init__(self, message: str, source: str | None = None, code: str = "POLICY_ERROR"):
        details = {"source": source} if source else {}
        super().__init__(message, code=code, details=details)


class RegistryError(PolicyError):
    """The rule registry is empty or inconsistent."""

    def __init__(self, message: str, rule_id: str | None = None):
        super().__init__(message, code="REGISTRY_ERROR")
        if rule_id:
            self.details["rule_id"] = rule_id


class ScanTimeoutError(OrchestrationError):
    """A scan exceeded its time budget."""

    def __init__(self, message: str = "Scan timed out", timeout: float | None = None):
        details = {"timeout": timeout} if timeout else {}
        super().__init__(message, code="SCAN_TIMEOUT", details=details)


class ScanCancelledError(OrchestrationError):
    """A scan was cancelled by its caller."""

    def __init__(self, message: str = "Scan cancelled"):
        super().__init__(message, code="SCAN_CANCELLED")


class OrphanViolationError(OrchestrationError):
    """A checker produced a violation for a rule the registry does not know."""

    def __init__(self, rule_id: str):
        super().__init__(
            f"Violation references unknown rule: {rule_id}",
            code="ORPHAN_VIOLATION",
            details={"rule_id": rule_id},
        )


class DocumentParseError(RhodibotError):
    """A structured document could not be parsed."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        details: dict[str, Any] = {}
        if line is not None:
            details["line"] = line
            details["column"] = column
            message = f"{message} (line {line}, column {column})"
        super().__init__(message, code="PARSE_ERROR", details=details)
        self.line = line
        self.column = column


class ConfigurationError(RhodibotError):
    """Tool configuration error."""

    def __init__(self, message: str, config_key: str | None = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, code="CONFIG_ERROR", details=details)


def retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    retry_if: Callable[[Exception], bool] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator to retry a function on failure.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between retries in seconds
        backoff: Multiplier for delay after each retry
        exceptions: Tuple of exceptions to catch and retry
        retry_if: Predicate deciding whether a caught exception is retried;
            exceptions it rejects propagate at once

    Returns:
        Decorated function with retry logic
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            current_delay = delay
            for attempt in range(1, max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if retry_if is not None and not retry_if(e):
                        raise
                    logger.debug(
                        f"{func.__name__} failed (attempt {attempt}/{max_attempts}): {e}; "
                        f"retrying in {current_delay:g}s"
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff
            # Final attempt propagates its exception
            return func(*args, **kwargs)

        return wrapper

    return decorator
