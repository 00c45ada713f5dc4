"""
Error hierarchy for the news sync pipeline.

Errors carry an explicit ``retryable`` flag so the HTTP retry loop and the
job runner can decide what to re-attempt without inspecting messages.

Hierarchy:
    ::

        NewsSpineError
        ├── TransientError            (retryable)
        │   ├── ProviderTimeoutError
        │   └── ProviderUnavailableError
        ├── ProviderError             (4xx, provider-reported error payloads)
        ├── ResolutionError           (entity lost after conflict re-read)
        ├── ConfigError               (unknown provider, unsupported dialect)
        └── JobTimeoutError           (attempt exceeded its hard deadline)

Usage:
    try:
        response = client.get(url, params=params)
    except httpx.TimeoutException as e:
        raise ProviderTimeoutError("request timed out", cause=e)
"""

from __future__ import annotations

import concurrent.futures
from typing import Any


class NewsSpineError(Exception):
    """Base class for all pipeline errors."""

    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.context:
            result["context"] = self.context
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, retryable={self.retryable})"


class TransientError(NewsSpineError):
    """Temporary failure that may succeed on retry (timeouts, 5xx, 429)."""

    default_retryable = True


class ProviderTimeoutError(TransientError):
    """Provider request timed out."""


class ProviderUnavailableError(TransientError):
    """Provider returned 5xx/429 or the connection failed."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class ProviderError(NewsSpineError):
    """Non-retryable provider failure or an error payload in a 2xx response."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class ResolutionError(NewsSpineError):
    """An entity could neither be found nor created."""


class ConfigError(NewsSpineError):
    """Invalid or unsupported configuration."""


class JobTimeoutError(NewsSpineError):
    """A job attempt exceeded its timeout."""

    default_retryable = True

    def __init__(
        self,
        operation: str,
        timeout: float,
        elapsed: float,
        *,
        pending: concurrent.futures.Future | None = None,
    ):
        super().__init__(
            f"{operation} timed out after {elapsed:.2f}s (limit: {timeout}s)",
            context={"operation": operation, "timeout": timeout, "elapsed": elapsed},
        )
        self.operation = operation
        self.timeout = timeout
        self.elapsed = elapsed
        # The abandoned attempt, still running.
        self.pending = pending
