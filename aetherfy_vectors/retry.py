# aetherfy_vectors/retry.py
# SPDX-License-Identifier: Apache-2.0
"""
Async retry with exponential backoff.

Only transient failures are retried; the default predicate is
`is_retryable_error` from the SDK error taxonomy. Jitter can be toggled off
for deterministic testing.

Usage:
    from aetherfy_vectors.retry import RetryPolicy

    policy = RetryPolicy(max_retries=5, base_delay=0.2, max_delay=5.0)
    result = await policy.run(lambda: client.search("docs", vector))
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from aetherfy_vectors.exceptions import is_retryable_error

LOG = logging.getLogger(__name__)

RetryCondition = Callable[[BaseException], bool]
BackoffHook = Callable[[int, float, BaseException], None]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration with exponential backoff.

    Attributes:
        max_retries:    Retries after the first attempt (total attempts = max_retries + 1).
        base_delay:     Initial backoff in seconds.
        max_delay:      Maximum backoff cap in seconds.
        backoff_factor: Exponential growth factor per retry.
        jitter:         Randomize each sleep into [0.5 * delay, delay].
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    jitter: bool = True

    def __post_init__(self):
        """Validate configuration on initialization."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay <= 0 or self.max_delay <= 0:
            raise ValueError("Backoff delays must be positive")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")
        if self.base_delay > self.max_delay:
            raise ValueError("base_delay cannot exceed max_delay")

    def delay_for(self, attempt: int) -> float:
        """Un-jittered backoff before retry number `attempt + 1`."""
        return min(self.base_delay * (self.backoff_factor ** attempt), self.max_delay)

    def sleep_for(self, attempt: int) -> float:
        delay = self.delay_for(attempt)
        if self.jitter:
            delay = delay * (0.5 + random.random() * 0.5)
        return delay

    async def run(
        self,
        operation: Callable[[], Awaitable[Any]],
        *,
        retry_condition: RetryCondition = is_retryable_error,
        on_backoff: Optional[BackoffHook] = None,
    ) -> Any:
        """
        Execute an async operation, retrying transient failures.

        Args:
            operation:       Zero-arg coroutine factory invoked on each attempt.
            retry_condition: Predicate deciding whether an error is retryable.
            on_backoff:      Optional callback (retry_no, sleep_seconds, exc) before sleeping.

        Returns:
            The result of `operation()` once it succeeds.

        Raises:
            The last error unchanged when retries are exhausted, or the first
            non-retryable error immediately.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as exc:
                if not retry_condition(exc) or attempt >= self.max_retries:
                    raise

                sleep_for = self.sleep_for(attempt)
                attempt += 1
                LOG.warning(
                    "retry %d/%d in %.2fs after %s: %s",
                    attempt,
                    self.max_retries,
                    sleep_for,
                    type(exc).__name__,
                    exc,
                )
                if on_backoff:
                    try:
                        on_backoff(attempt, sleep_for, exc)
                    except Exception:
                        # Hooks must not break the retry loop
                        LOG.debug("on_backoff hook failed", exc_info=True)

                await asyncio.sleep(sleep_for)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[Any]],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    retry_condition: RetryCondition = is_retryable_error,
    jitter: bool = True,
    on_backoff: Optional[BackoffHook] = None,
) -> Any:
    """Functional form of `RetryPolicy.run`."""
    policy = RetryPolicy(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay,
        backoff_factor=backoff_factor,
        jitter=jitter,
    )
    return await policy.run(operation, retry_condition=retry_condition, on_backoff=on_backoff)


__all__ = ["RetryPolicy", "retry_with_backoff"]
