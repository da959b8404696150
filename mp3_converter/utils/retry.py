"""Exponential backoff for flaky provider calls."""

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Iterator, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


def backoff_delays(max_attempts: int, base_delay: float) -> Iterator[float]:
    """Delays slept between attempts: ``base_delay``, then doubling, one fewer than attempts."""
    for retry in range(max(1, max_attempts) - 1):
        yield base_delay * (2**retry)


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Retry a coroutine function on the given exceptions.

    Args:
        max_attempts: Total number of calls (values below 1 count as 1)
        base_delay: Delay before the first retry, doubled for every later one
        exceptions: Exception types that trigger a retry; anything else propagates at once

    Returns:
        Decorator producing the retrying coroutine function
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        name = getattr(func, "__qualname__", repr(func))

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 1
            for delay in backoff_delays(max_attempts, base_delay):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    logger.warning(f"{name} failed (attempt {attempt}): {e}. Retrying in {delay}s...")
                await asyncio.sleep(delay)
                attempt += 1

            try:
                return await func(*args, **kwargs)
            except exceptions as e:
                logger.error(f"{name} failed after {attempt} attempts: {e}")
                raise

        return wrapper

    return decorator
