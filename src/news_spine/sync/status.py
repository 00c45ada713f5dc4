"""
Ephemeral per-batch sync status.

Each (session, provider, batch) has one record, overwritten on every
transition and expiring after ``ttl_seconds``:

    sync_status:{session_id}:{provider}:{batch_number}
        → {"status": ..., "data": {...}, "updated_at": "<ISO-8601 UTC>"}

Writes are best-effort. A status store outage is logged and never fails the
job that tried to write.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from news_spine.cache import CacheBackend
from news_spine.models import Provider, SyncState

logger = structlog.get_logger(__name__)

ERROR_PREVIEW_LENGTH = 50
FAILED_STATES = {SyncState.FAILED.value, SyncState.FAILED_PERMANENTLY.value}


@dataclass
class BatchReport:
    batch_number: int
    status: str
    items: int = 0
    error: str | None = None
    updated_at: str | None = None


@dataclass
class ProviderSummary:
    provider: str
    batches: list[BatchReport] = field(default_factory=list)
    completed: int = 0
    failed: int = 0
    pending: int = 0
    items: int = 0

    def add(self, report: BatchReport) -> None:
        self.batches.append(report)
        if report.status == SyncState.COMPLETED.value:
            self.completed += 1
            self.items += report.items
        elif report.status in FAILED_STATES:
            self.failed += 1
        else:
            self.pending += 1


@dataclass
class SessionSummary:
    session_id: str
    providers: dict[str, ProviderSummary] = field(default_factory=dict)

    @property
    def completed(self) -> int:
        return sum(p.completed for p in self.providers.values())

    @property
    def failed(self) -> int:
        return sum(p.failed for p in self.providers.values())

    @property
    def pending(self) -> int:
        return sum(p.pending for p in self.providers.values())

    @property
    def items(self) -> int:
        return sum(p.items for p in self.providers.values())

    @property
    def found(self) -> bool:
        return any(p.batches for p in self.providers.values())


class SyncStatusStore:
    def __init__(
        self, cache: CacheBackend, *, ttl_seconds: int = 3600, scan_batches: int = 20
    ):
        self._cache = cache
        self._ttl = ttl_seconds
        self._scan_batches = scan_batches

    @staticmethod
    def key(session_id: str, provider: str, batch_number: int) -> str:
        return f"sync_status:{session_id}:{provider}:{batch_number}"

    def record(
        self,
        session_id: str,
        provider: str,
        batch_number: int,
        status: SyncState | str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Overwrite the batch's status. Returns False if the write failed."""
        value = {
            "status": SyncState(status).value,
            "data": data or {},
            "updated_at": datetime.now(UTC).isoformat(),
        }
        try:
            self._cache.set(
                self.key(session_id, provider, batch_number), value, ttl_seconds=self._ttl
            )
        except Exception as e:
            logger.warning(
                "sync_status_write_failed",
                session_id=session_id,
                provider=provider,
                batch_number=batch_number,
                status=value["status"],
                error=str(e),
            )
            return False
        return True

    def get(self, session_id: str, provider: str, batch_number: int) -> dict[str, Any] | None:
        return self._cache.get(self.key(session_id, provider, batch_number))

    def summarize(
        self,
        session_id: str,
        providers: Iterable[str] | None = None,
        max_batches: int | None = None,
    ) -> SessionSummary:
        """Scan batches 1..max_batches of each provider and aggregate them.

        ``max_batches`` defaults to the store's ``scan_batches``.
        """
        if max_batches is None:
            max_batches = self._scan_batches
        summary = SessionSummary(session_id=session_id)
        for provider in providers or Provider.values():
            provider_summary = ProviderSummary(provider=provider)
            for batch_number in range(1, max_batches + 1):
                record = self.get(session_id, provider, batch_number)
                if record is None:
                    continue
                provider_summary.add(self._batch_report(batch_number, record))
            summary.providers[provider] = provider_summary
        return summary

    @staticmethod
    def _batch_report(batch_number: int, record: dict[str, Any]) -> BatchReport:
        data = record.get("data") or {}
        status = record.get("status", SyncState.PENDING.value)
        items = 0
        if status == SyncState.COMPLETED.value:
            items = int(data.get("created", 0)) + int(data.get("updated", 0))
        error = data.get("error")
        return BatchReport(
            batch_number=batch_number,
            status=status,
            items=items,
            error=str(error)[:ERROR_PREVIEW_LENGTH] if error else None,
            updated_at=record.get("updated_at"),
        )
