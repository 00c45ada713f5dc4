"""Hard deadline for one job attempt.

The attempt runs in its own worker thread. When the deadline passes the
caller gets ``JobTimeoutError`` at once. Threads cannot be killed, so the
attempt keeps running; its future is exposed as ``error.pending`` for callers
that must not start another attempt until it has finished.
"""

import concurrent.futures
import time
from collections.abc import Callable
from typing import Any, TypeVar

from news_spine.errors import JobTimeoutError

T = TypeVar("T")


def run_with_timeout(
    func: Callable[..., T],
    timeout_seconds: float,
    operation: str | None = None,
    args: tuple[Any, ...] | None = None,
    kwargs: dict[str, Any] | None = None,
) -> T:
    """Run a callable with a timeout.

    Raises:
        JobTimeoutError: If execution exceeds ``timeout_seconds``
        Exception: Any exception raised by func
    """
    if timeout_seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_seconds}")

    start = time.monotonic()
    executor = concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="news-spine-job"
    )
    try:
        future = executor.submit(func, *(args or ()), **(kwargs or {}))
        try:
            return future.result(timeout=timeout_seconds)
        except concurrent.futures.TimeoutError:
            raise JobTimeoutError(
                operation=operation or getattr(func, "__name__", "unknown"),
                timeout=timeout_seconds,
                elapsed=time.monotonic() - start,
                pending=future,
            ) from None
    finally:
        # Do not join a worker that overran its deadline.
        executor.shutdown(wait=False)
