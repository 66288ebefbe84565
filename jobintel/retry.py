"""Retry decorator with exponential backoff (stdlib only)."""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Tuple, Type

from jobintel.log import get_logger

log = get_logger(__name__)

AttemptHook = Callable[..., None]


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    before_attempt: AttemptHook | None = None,
) -> Callable:
    """Decorator: retries the wrapped callable with exponential backoff.

    Only exceptions listed in *retryable* trigger another attempt; anything
    else propagates immediately. The last failure is re-raised.

    *before_attempt* is called as ``before_attempt(attempt, *args, **kwargs)``
    ahead of every attempt, first one included. Whatever it raises ends the
    loop at once, even if the exception type is retryable.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                if before_attempt is not None:
                    before_attempt(attempt, *args, **kwargs)
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt == max_attempts:
                        log.warning("%s failed after %d attempts: %s", fn.__qualname__, max_attempts, exc)
                        raise
                    delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
                    if jitter:
                        delay *= 0.5 + random.random()
                    log.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__, attempt, max_attempts, exc, delay,
                    )
                    time.sleep(delay)

        return wrapper

    return decorator
