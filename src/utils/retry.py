"""
Retry decorator with exponential backoff for database operations

Used when opening or re-opening PostgreSQL connections, where idle drops
and brief network failures are common in long parallel runs.

Usage:
    from utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=0.5)
    def connect():
        return psycopg2.connect(dsn)
"""

import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

RETRYABLE_PATTERNS = (
    "connection",
    "timeout",
    "could not connect",
    "server closed the connection",
    "terminating connection",
    "connection refused",
    "connection reset",
    "broken pipe",
    "the database system is starting up",
)

RETRYABLE_EXCEPTION_NAMES = ("operationalerror", "interfaceerror", "connectionerror", "timeouterror")


def is_retryable_db_exception(exception: Exception) -> bool:
    """
    Determine if a database exception is transient

    Connection, timeout and server-restart errors are retryable; syntax
    errors, permission errors and constraint violations are not.

    Args:
        exception: The exception to check

    Returns:
        True if the exception is retryable
    """
    exception_type = type(exception).__name__.lower()
    if exception_type in RETRYABLE_EXCEPTION_NAMES:
        return True

    message = str(exception).lower()
    return any(pattern in message for pattern in RETRYABLE_PATTERNS)


def compute_delay(attempt: int, base_delay: float, max_delay: float = 60.0, jitter: bool = True) -> float:
    """Exponential backoff (base 2) capped at max_delay, with +/-25% jitter."""
    delay = min(base_delay * (2.0 ** attempt), max_delay)
    if jitter:
        jitter_amount = delay * 0.25
        delay = max(0.1, delay + random.uniform(-jitter_amount, jitter_amount))
    return delay


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Decorator that retries transient database errors with exponential backoff

    Non-retryable errors fail immediately.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        on_retry: Callback function(attempt, exception, delay) called on each retry
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            func_name = getattr(func, '__name__', 'function')

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    if not is_retryable_db_exception(e):
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded for {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    delay = compute_delay(attempt, base_delay)

                    logger.warning(
                        f"Retryable database error in {func_name} "
                        f"(attempt {attempt + 1}/{max_retries}): "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        on_retry(attempt + 1, e, delay)

                    time.sleep(delay)

            raise RuntimeError(f"Unexpected error in retry logic for {func_name}")

        return wrapper
    return decorator
