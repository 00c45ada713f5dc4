"""
Provider adapter contract and shared HTTP plumbing.

Every adapter satisfies ``NewsProvider``: ``fetch_page`` returns one page of
raw provider-native articles and never raises for fetch failures. Transient
failures are retried by ``ProviderHttpClient``; once retries are exhausted,
or the provider reports an error, the adapter logs and returns ``[]``.
Callers treat an empty page as the end of pagination.

Adapters do not share a base class. Each composes a ``ProviderHttpClient``
and maps its own pagination and date conventions onto the uniform contract.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Protocol

import httpx
import structlog

from news_spine.errors import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from news_spine.retry import ConstantBackoff, RetryContext

logger = structlog.get_logger(__name__)

RawArticle = dict[str, Any]

USER_AGENT = "news-spine/0.1"


class NewsProvider(Protocol):
    """One page of raw articles per call, for a date window."""

    @property
    def name(self) -> str: ...

    def fetch_page(
        self,
        page: int,
        page_size: int,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[RawArticle]: ...


def yesterday_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Start and end of the previous calendar day."""
    now = now or datetime.now()
    start = (now - timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    end = start.replace(hour=23, minute=59, second=59)
    return start, end


def resolve_window(
    from_date: datetime | None,
    to_date: datetime | None,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Fill missing bounds with yesterday's and validate ordering."""
    default_from, default_to = yesterday_window(now)
    start = from_date or default_from
    end = to_date or default_to
    if start > end:
        raise ValueError(f"from_date {start.isoformat()} is after to_date {end.isoformat()}")
    return start, end


def check_page(page: int, page_size: int) -> None:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")


class ProviderHttpClient:
    """httpx client with a fixed-attempt, fixed-delay retry for transient failures.

    Timeouts, connection errors, 5xx and 429 are retried. Any other non-2xx
    response raises ``ProviderError`` straight away.
    """

    def __init__(
        self,
        provider: str,
        *,
        timeout: float = 30.0,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self._client = client or httpx.Client(
            timeout=timeout, headers={"User-Agent": USER_AGENT}
        )
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._sleep = sleep

    def get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET ``url`` and decode a JSON object body, retrying transient failures."""
        ctx = RetryContext(
            ConstantBackoff(max_attempts=self._max_attempts, delay=self._retry_delay),
            on_retry=self._log_retry,
            sleep=self._sleep,
        )
        return ctx.run(self._get_once, url, params)

    def _get_once(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"{self.provider} request timed out", cause=e) from e
        except httpx.TransportError as e:
            raise ProviderUnavailableError(f"{self.provider} connection failed: {e}", cause=e) from e

        status = response.status_code
        if status == 429 or status >= 500:
            raise ProviderUnavailableError(
                f"{self.provider} returned HTTP {status}", status_code=status
            )
        if not response.is_success:
            raise ProviderError(
                f"{self.provider} returned HTTP {status}: {response.text[:200]}",
                status_code=status,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"{self.provider} returned invalid JSON", cause=e) from e
        if not isinstance(data, dict):
            raise ProviderError(f"{self.provider} returned a non-object JSON body")
        return data

    def _log_retry(self, attempt: int, error: Exception, delay: float) -> None:
        logger.warning(
            "provider_request_retry",
            provider=self.provider,
            attempt=attempt,
            delay=delay,
            error=str(error),
        )

    def close(self) -> None:
        self._client.close()
