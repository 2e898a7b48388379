"""Retry with exponential backoff for content source requests."""

import asyncio
import functools
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    backoff_factor: float = 2.0,
    jitter: float = 0.0,
) -> float:
    """Delay before the retry following a failed attempt (0-based)."""
    delay = min(base_delay * (backoff_factor**attempt), max_delay)
    if jitter > 0:
        # Using random for jitter is safe here - not cryptographic use
        delay += random.uniform(0, jitter)  # nosec B311
    return delay


def with_retry(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    backoff_factor: float = 2.0,
    jitter: float = 0.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Sleep = asyncio.sleep,
    on_retry: Callable[[int, BaseException, float], None] | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator that retries a coroutine function with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts after the first call
        base_delay: Initial delay between retries in seconds
        max_delay: Maximum delay between retries in seconds
        backoff_factor: Multiplier for exponential backoff
        jitter: Upper bound of random seconds added to each delay
        retry_on: Tuple of exception types to retry on
        sleep: Awaitable sleep used between attempts
        on_retry: Callback receiving (attempt, exception, delay) before sleeping

    Returns:
        Decorated coroutine function with retry logic
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt == max_retries:
                        raise

                    delay = backoff_delay(
                        attempt, base_delay, max_delay, backoff_factor, jitter
                    )
                    logger.debug(
                        f"{func.__name__} failed (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{e!r}. Retrying in {delay:.2f}s..."
                    )
                    if on_retry is not None:
                        on_retry(attempt + 1, e, delay)
                    await sleep(delay)

            raise RuntimeError("Unexpected retry loop exit")

        return wrapper

    return decorator
