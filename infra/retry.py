"""
Retry decorator with capped exponential backoff for transport calls.
"""

from __future__ import annotations

import functools
import time
from typing import Any, Callable, Optional, Tuple, TypeVar

from infra.logger import get_logger

T = TypeVar("T")


def retry(
    max_retries: int = 3,
    backoff_factor: float = 0.5,
    max_delay: Optional[float] = 8.0,
    retry_on: Tuple[type[BaseException], ...] = (Exception,),
):
    """
    Decorator to retry a function with exponential backoff.

    Only wrap calls that are safe to repeat (reads, or submissions the remote
    side deduplicates); a retried write that already landed is applied twice.

    Args:
        max_retries: Number of retry attempts before raising.
        backoff_factor: Initial sleep duration in seconds; doubles each retry.
        max_delay: Upper bound for a single sleep, or None for no bound.
        retry_on: Exception types that trigger a retry.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = get_logger(f"{func.__module__}.{func.__name__}")

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = backoff_factor
            for attempt in range(1, max_retries + 2):
                try:
                    return func(*args, **kwargs)
                except retry_on as exc:  # type: ignore[misc]
                    if attempt > max_retries:
                        logger.error("Retry exhausted after %s attempts: %s", max_retries, exc)
                        raise
                    logger.warning("Retrying attempt %s/%s after error: %s", attempt, max_retries, exc)
                    time.sleep(delay)
                    delay = delay * 2 if max_delay is None else min(delay * 2, max_delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator
