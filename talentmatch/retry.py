"""Retry decorator with exponential backoff. Stdlib only."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    *,
    base_delay: float,
    max_delay: float,
    backoff_factor: float,
    jitter: bool,
) -> float:
    """Seconds to wait after failed *attempt* (1-based)."""
    delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """Decorator: call again on *retryable* errors, up to *max_attempts* times.

    Other exceptions propagate on the first failure, and the last retryable
    one propagates once the attempts run out.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt >= max_attempts:
                        logger.error(
                            "%s gave up after %d attempt(s): %s: %s",
                            fn.__qualname__, attempt, type(exc).__name__, exc,
                        )
                        raise
                    delay = backoff_delay(
                        attempt,
                        base_delay=base_delay,
                        max_delay=max_delay,
                        backoff_factor=backoff_factor,
                        jitter=jitter,
                    )
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__, attempt, max_attempts, type(exc).__name__, delay,
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
