"""Retry strategies for durable-store calls.

The publish pipeline wraps each per-identifier transaction in a
:class:`RetryContext`. Only errors whose ``retryable`` flag is set (lock
contention, lost compare-and-swap) are retried; validation failures
surface on the first attempt.

Example:
    >>> ctx = RetryContext(ExponentialBackoff(max_attempts=3, base_delay=0.05))
    >>> version = ctx.run(lambda: publish_one(conn, identifier, value))
    >>> ctx.attempts
    1
"""

from __future__ import annotations

import random
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from langfactory.core.errors import is_retryable

T = TypeVar("T")


class RetryStrategy(ABC):
    """Base class for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay in seconds before the retry following ``attempt`` (1-based)."""
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception) -> bool:
        """Whether another attempt is allowed after ``attempt`` failed."""
        ...


@dataclass
class ExponentialBackoff(RetryStrategy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * multiplier ** (attempt - 1), max_delay)
    """

    max_attempts: int = 3
    base_delay: float = 0.05
    max_delay: float = 1.0
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.1

    def next_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.multiplier ** max(attempt - 1, 0)), self.max_delay)
        if self.jitter and delay > 0:
            jitter_amount = delay * self.jitter_range
            delay = max(0.0, delay + random.uniform(-jitter_amount, jitter_amount))
        return delay

    def should_retry(self, attempt: int, error: Exception) -> bool:
        return attempt < self.max_attempts and is_retryable(error)


@dataclass
class NoRetry(RetryStrategy):
    """No retry - fail immediately."""

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def should_retry(self, attempt: int, error: Exception) -> bool:
        return False


@dataclass
class RetryContext:
    """Runs a callable under a strategy, tracking attempts and errors.

    ``sleep`` is injectable so tests do not wait on real backoff.
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], None] = time.sleep
    attempt: int = field(default=0, init=False)
    last_error: Exception | None = field(default=None, init=False)
    errors: list[Exception] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        """Number of attempts made."""
        return self.attempt

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute ``func`` until it succeeds or the strategy gives up.

        Raises:
            The last exception once retries are exhausted or the error is
            not retryable.
        """
        while True:
            self.attempt += 1
            try:
                return func(*args, **kwargs)
            except Exception as e:
                self.last_error = e
                self.errors.append(e)
                if not self.strategy.should_retry(self.attempt, e):
                    raise
                delay = self.strategy.next_delay(self.attempt)
                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)
                self.sleep(delay)


__all__ = ["RetryStrategy", "ExponentialBackoff", "NoRetry", "RetryContext"]
