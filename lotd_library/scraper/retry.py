"""
Retry policy for flaky page loads.

Wiki pages occasionally come back truncated or fail in transit. Operations
are retried with exponential backoff up to a fixed number of attempts, after
which a ``RetryExhaustedError`` is raised to the caller.

Example:
    >>> policy = RetryPolicy(max_attempts=3, backoff_base=0.5)
    >>> html = await policy.run(lambda: fetcher.fetch(url), f"fetch {url}")
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from lotd_library.utils.config import RetryConfig
from lotd_library.utils.exceptions import RetryExhaustedError, ScraperError
from lotd_library.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Capped exponential backoff.

    Attributes:
        max_attempts: Total attempts, including the first one.
        backoff_base: Delay before the first retry in seconds.
        backoff_factor: Multiplier applied for every further retry.
        max_backoff: Maximum delay in seconds.
    """
    max_attempts: int = 5
    backoff_base: float = 1.0
    backoff_factor: float = 2.0
    max_backoff: float = 30.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            backoff_base=config.backoff_base,
            backoff_factor=config.backoff_factor,
            max_backoff=config.max_backoff,
        )

    def delay_for(self, retry: int) -> float:
        """
        Delay before the given retry.

        Args:
            retry: 1-based retry number (1 is the second attempt).

        Returns:
            Delay in seconds.
        """
        return min(self.backoff_base * self.backoff_factor ** (retry - 1), self.max_backoff)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str) -> T:
        """
        Await ``operation()`` until it succeeds or attempts run out.

        Only ``ScraperError`` instances flagged ``retryable`` are retried;
        anything else propagates on the spot.

        Args:
            operation: Zero-argument factory returning a fresh awaitable per attempt.
            description: What is being attempted, for logs and the final error.

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable error.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except ScraperError as e:
                if not e.retryable:
                    raise

                if attempt == self.max_attempts:
                    raise RetryExhaustedError(operation=description, attempts=attempt) from e

                delay = self.delay_for(attempt)
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} to {description} failed: {e}; "
                    f"retrying in {delay:.1f}s"
                )
                if delay > 0:
                    await asyncio.sleep(delay)

        # max_attempts is validated >= 1, so the loop always returns or raises
        raise RetryExhaustedError(operation=description, attempts=self.max_attempts)
