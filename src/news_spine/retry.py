"""
Retry strategies for provider HTTP calls.

Adapters retry transient failures a fixed number of times with a fixed
delay; anything not marked retryable is re-raised on the first failure.

Example:
    >>> ctx = RetryContext(ConstantBackoff(max_attempts=3, delay=1.0))
    >>> result = ctx.run(lambda: call_api())
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

T = TypeVar("T")


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


def is_retryable(error: Exception) -> bool:
    """Errors opt in to retry via a ``retryable`` attribute."""
    return bool(getattr(error, "retryable", False))


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay in seconds before the attempt after ``attempt``."""
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Whether another attempt may follow attempt number ``attempt`` (1-based)."""
        ...


@dataclass
class ConstantBackoff(RetryStrategy):
    """Fixed delay between attempts, bounded total attempts."""

    max_attempts: int = 3
    delay: float = 1.0

    def next_delay(self, attempt: int) -> float:
        return self.delay

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        if attempt >= self.max_attempts:
            return False
        return error is None or is_retryable(error)


@dataclass
class RetryContext:
    """Runs a callable under a retry strategy and records each failure."""

    strategy: RetryStrategy
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], None] = time.sleep
    attempt: int = field(default=0, init=False)
    last_error: Exception | None = field(default=None, init=False)
    errors: list[tuple[int, Exception, datetime]] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        """Number of attempts made."""
        return self.attempt

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute ``func`` until it succeeds or the strategy gives up.

        Raises:
            The last exception once no further attempt is allowed.
        """
        while True:
            self.attempt += 1
            try:
                return func(*args, **kwargs)
            except Exception as e:
                self.last_error = e
                self.errors.append((self.attempt, e, utcnow()))

                if not self.strategy.should_retry(self.attempt, e):
                    raise

                delay = self.strategy.next_delay(self.attempt)
                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)
                if delay > 0:
                    self.sleep(delay)
