"""Retry decorator for transient SQLite write failures.

Retries 3 times with exponential backoff plus random jitter on
``sqlite3.OperationalError`` (e.g. ``database is locked``), then logs and
re-raises the original exception.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


def _log_final_failure(retry_state: RetryCallState) -> Any:
    """Log exhaustion and re-raise the last exception."""
    operation = getattr(retry_state.fn, "_operation_name", "unknown")
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.error(
        "Storage write failed after all retries",
        operation=operation,
        attempts=retry_state.attempt_number,
        exception=str(exception),
    )
    if retry_state.outcome is not None:
        return retry_state.outcome.result()
    return None


def _before_sleep_log(retry_state: RetryCallState) -> None:
    """Log a warning before each retry attempt."""
    operation = getattr(retry_state.fn, "_operation_name", "unknown")
    logger.warning(
        "Retrying storage write",
        operation=operation,
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else 0,
    )


def resilient_write(operation_name: str, attempts: int = 3) -> Callable[[F], F]:
    """Create a retry decorator for a SQLite write.

    Args:
        operation_name: Human-readable name used in logs.
        attempts: Maximum number of attempts.

    Returns:
        A decorator that wraps the function with retry logic.
    """

    def decorator(func: F) -> F:
        func._operation_name = operation_name  # type: ignore[attr-defined]

        wrapped = retry(
            retry=retry_if_exception_type(sqlite3.OperationalError),
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.05, max=1) + wait_random(0, 0.05),
            before_sleep=_before_sleep_log,
            retry_error_callback=_log_final_failure,
        )(func)

        return wrapped  # type: ignore[return-value]

    return decorator
