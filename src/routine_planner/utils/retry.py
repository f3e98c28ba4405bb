"""Bounded retry with exponential backoff for oracle calls.

Only transient failures are retried (service unavailable, rate limits,
timeouts). Validation errors and non-retryable API errors propagate on the
first attempt. Persistence writes are never wrapped in this helper.

Usage:
    from routine_planner.utils.retry import RetryConfig, retry_async

    payload = await retry_async(
        lambda: oracle.generate_routine(context),
        RetryConfig(max_attempts=3),
        operation_name="generate_routine",
    )
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from ..exceptions import LLMRateLimitError, TransientIOError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total attempts including the first one (default 3).
        base_delay: Initial delay between attempts in seconds (default 1.0).
        max_delay: Maximum delay between attempts in seconds (default 8.0).
        exponential_base: Multiplier applied per attempt (default 2.0).
        jitter: Whether to add random jitter to delays (default False).
        retryable_exceptions: Exception types that trigger another attempt.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 8.0
    exponential_base: float = 2.0
    jitter: bool = False
    retryable_exceptions: Tuple[Type[Exception], ...] = (TransientIOError,)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay after a failed attempt (0-based)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        if self.jitter:
            delay += random.uniform(0, delay * 0.1)
        return min(delay, self.max_delay)

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        """Build the oracle retry policy from application settings."""
        return cls(
            max_attempts=settings.oracle_max_attempts,
            base_delay=settings.oracle_base_delay,
            max_delay=settings.oracle_max_delay,
        )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    operation_name: str = "oracle call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Execute an async operation with bounded retries.

    Args:
        operation: Zero-argument callable returning an awaitable
        config: Retry policy (defaults to 3 attempts)
        operation_name: Name for logging
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The operation result

    Raises:
        The last retryable exception once attempts are exhausted, or any
        non-retryable exception immediately.
    """
    config = config or RetryConfig()
    attempts = max(1, config.max_attempts)

    for attempt in range(attempts):
        try:
            return await operation()
        except config.retryable_exceptions as e:
            if attempt + 1 >= attempts:
                logger.error(f"{operation_name} failed after {attempts} attempts: {e}")
                raise

            delay = config.get_delay(attempt)
            if isinstance(e, LLMRateLimitError) and e.retry_after:
                delay = min(e.retry_after, config.max_delay)

            logger.warning(
                f"{operation_name} failed ({type(e).__name__}). "
                f"Retry {attempt + 1}/{attempts - 1} in {delay:.1f}s"
            )
            await sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{operation_name} exhausted retries without a result")
