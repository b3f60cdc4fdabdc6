"""
Exponential-backoff retry for async calls.

Wraps an awaitable factory (e.g. playwright's chromium.launch) so that a
transient failure is retried with growing delays before the last
exception is re-raised to the caller.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from stayscout.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """
    max_retries extra attempts after the first; delay before retry n
    (0-based) is base_delay * exponential_base**n, capped at max_delay.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base <= 1:
            raise ValueError("exponential_base must be > 1")

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)


def retry_async_with_backoff(
    func: Callable[..., Awaitable[Any]],
    config: Optional[RetryConfig] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
) -> Callable[..., Awaitable[Any]]:
    """
    Wrap an async callable with retries.

    Args:
        func: Coroutine function to call
        config: Retry configuration (default: 3 retries, 1s base delay)
        retry_on: Exception types that trigger a retry; others propagate at once
        on_retry: Called as on_retry(retry_number, exception) before each sleep

    Example:
        >>> launch = retry_async_with_backoff(pw.chromium.launch, RetryConfig(max_retries=2))
        >>> browser = await launch(headless=True)
    """
    config = config or RetryConfig()
    name = getattr(func, "__qualname__", repr(func))

    async def wrapper(*args, **kwargs):
        for attempt in range(config.attempts):
            try:
                return await func(*args, **kwargs)
            except retry_on as e:
                if attempt == config.max_retries:
                    if config.max_retries:
                        logger.error(f"{name}: giving up after {config.attempts} attempts: {e}")
                    raise

                delay = config.delay_for(attempt)
                logger.warning(f"{name}: attempt {attempt + 1}/{config.attempts} failed, retrying in {delay:.2f}s: {e}")
                if on_retry:
                    on_retry(attempt + 1, e)
                await asyncio.sleep(delay)

    return wrapper
