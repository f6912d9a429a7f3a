"""
Bounded retry policy with exponential backoff for transient failures.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .error_handler import TransientNetworkError
from .logger import logger


T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behaviour."""

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    retryable_errors: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (TransientNetworkError, ConnectionError, TimeoutError)
    )


class RetryManager:
    """
    Runs async operations, retrying them on retryable exceptions.

    ``max_retries`` counts retries, so an operation is attempted at most
    ``max_retries + 1`` times.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryManager":
        return cls(
            max_retries=config.max_retries,
            base_delay=config.initial_delay,
            max_delay=config.max_delay,
            exponential_base=config.backoff_factor,
        )

    def _calculate_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)
        if self.jitter:
            delay *= random.uniform(0.8, 1.2)
        return delay

    async def execute(
        self,
        func: Callable[[], Awaitable[T]],
        exceptions: Tuple[Type[BaseException], ...] = RetryConfig().retryable_errors,
        max_retries: Optional[int] = None
    ) -> T:
        """
        Await ``func()`` until it succeeds or the retry budget is spent.

        Args:
            func: Zero-argument coroutine function to run
            exceptions: Exception types that trigger a retry
            max_retries: Override for this call only

        Returns:
            Whatever ``func`` returns

        Raises:
            The last retryable exception once attempts are exhausted, or any
            non-retryable exception immediately.
        """
        retries = self.max_retries if max_retries is None else max_retries
        attempts = retries + 1

        for attempt in range(attempts):
            try:
                return await func()
            except exceptions as e:
                if attempt + 1 >= attempts:
                    logger.error(f"All {attempts} attempts failed, giving up: {e}")
                    raise
                delay = self._calculate_delay(attempt)
                logger.warning(
                    f"Attempt {attempt + 1} failed: {e}. Retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover


__all__ = [
    "RetryConfig",
    "RetryManager",
]
