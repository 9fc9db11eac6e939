"""Retry decorator with exponential backoff."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


def retry(
    max_attempts: int = 3,
    delay_ms: int = 200,
    backoff_factor: float = 2.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[..., Any]:
    """Decorator for async functions that retries on the given exception types.

    Exceptions outside ``retry_on`` propagate on the first attempt.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= max_attempts:
                        raise
                    wait = (delay_ms * (backoff_factor ** (attempt - 1))) / 1000
                    logger.debug(
                        "retry_attempt",
                        func=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        wait_seconds=wait,
                        error=str(e),
                    )
                    await asyncio.sleep(wait)
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)

        return wrapper

    return decorator
