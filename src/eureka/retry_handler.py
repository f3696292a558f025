"""Retry logic with exponential backoff for transient failures.

This module provides a decorator and utilities for retrying operations that may
fail due to transient errors (network timeouts, gateway 502s while a module is
still registering routes, etc).

Design Philosophy:
- Ruthless simplicity: Single decorator for all retry needs
- Configurable: Max attempts, delays, jitter can be tuned
- Observable: Clear logging of retry attempts

Security:
- No credential leakage in logs
- Safe default limits (max 5 attempts)

Usage:
    @retry_with_exponential_backoff(max_attempts=3)
    def fetch_install_json():
        return session.get(url)
"""

import functools
import logging
import random
import time
from typing import Any, Callable, TypeVar

import requests

from eureka.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)

# Type variable for generic function wrapping
F = TypeVar("F", bound=Callable[..., Any])


class TransientError(Exception):
    """Marker for failures worth another attempt (retryable HTTP statuses)."""

    pass


def retry_with_exponential_backoff(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    retryable_exceptions: tuple[type[Exception], ...] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> Callable[[F], F]:
    """Decorator for retrying operations with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        initial_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay between retries in seconds (default: 30.0)
        jitter: Add random jitter to delays to prevent thundering herd (default: True)
        retryable_exceptions: Tuple of exception types to retry
            (default: network errors and TransientError)
        sleep: Sleep function (default: time.sleep), injectable for tests

    Returns:
        Decorated function that will retry on transient failures
    """
    if retryable_exceptions is None:
        retryable_exceptions = _get_default_retryable_exceptions()

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            do_sleep = sleep or time.sleep

            for attempt in range(1, max_attempts + 1):
                try:
                    result = func(*args, **kwargs)

                    if attempt > 1:
                        logger.info(
                            f"{func.__name__} succeeded on attempt {attempt}/{max_attempts}"
                        )

                    return result

                except retryable_exceptions as e:
                    if attempt >= max_attempts:
                        logger.error(
                            f"{func.__name__} failed after {max_attempts} attempts: "
                            f"{_safe_error_message(e)}"
                        )
                        raise

                    actual_delay = delay
                    if jitter:
                        # Add random jitter: ±25% of delay
                        jitter_amount = delay * 0.25
                        actual_delay = delay + random.uniform(-jitter_amount, jitter_amount)

                    actual_delay = min(actual_delay, max_delay)

                    logger.warning(
                        f"{func.__name__} failed on attempt {attempt}/{max_attempts}, "
                        f"retrying in {actual_delay:.2f}s: {_safe_error_message(e)}"
                    )

                    do_sleep(actual_delay)
                    delay *= 2

            raise RuntimeError(f"{func.__name__} failed with unknown error")

        return wrapper  # type: ignore

    return decorator


def _get_default_retryable_exceptions() -> tuple[type[Exception], ...]:
    """Get tuple of default retryable exception types."""
    return (
        TimeoutError,
        ConnectionError,
        requests.ConnectionError,
        requests.Timeout,
        TransientError,
    )


def _safe_error_message(exception: Exception) -> str:
    """Create safe error message without leaking credentials.

    Security:
        - Truncates very long messages (HTTP bodies)
        - Masks tokens, passwords and secrets via LogSanitizer
    """
    error_str = str(exception)

    if len(error_str) > 200:
        error_str = error_str[:200] + "..."

    return LogSanitizer.sanitize(error_str)


def should_retry_http_error(status_code: int) -> bool:
    """Determine if HTTP status code should trigger retry.

    Retryable status codes:
        - 408: Request Timeout
        - 429: Too Many Requests (throttling)
        - 500: Internal Server Error
        - 502: Bad Gateway
        - 503: Service Unavailable
        - 504: Gateway Timeout
    """
    retryable_codes = {408, 429, 500, 502, 503, 504}
    return status_code in retryable_codes


__all__ = [
    "TransientError",
    "retry_with_exponential_backoff",
    "should_retry_http_error",
]
