"""
Sync job: persist one provider batch and report its status.

State machine for one (provider, batch):

    pending → running → completed
                      ↘ failed → (retry → running)* → failed_permanently

``SyncJob`` is the unit of work. ``JobRunner`` is the in-process runner with
a fixed attempt budget, fixed backoff and a hard per-attempt timeout; the
Celery task in ``news_spine.tasks`` gives the same contract on workers.
"""

from __future__ import annotations

import concurrent.futures
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from news_spine.errors import JobTimeoutError
from news_spine.models import CanonicalItem, SaveStats, SyncState
from news_spine.timeout import run_with_timeout

if TYPE_CHECKING:
    from news_spine.config import Settings
    from news_spine.persistence import NewsPersistenceService
    from news_spine.sync.status import SyncStatusStore

logger = structlog.get_logger(__name__)


@dataclass
class SyncJob:
    provider: str
    batch_number: int
    session_id: str
    items: list[CanonicalItem] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"sync_job:{self.provider}:{self.batch_number}"

    def _log(self):
        return logger.bind(
            session_id=self.session_id,
            provider=self.provider,
            batch_number=self.batch_number,
        )

    def handle(
        self,
        persistence: NewsPersistenceService,
        status_store: SyncStatusStore,
    ) -> SaveStats:
        """Run one attempt.

        Raises:
            Exception: Whatever the persistence layer raised, after recording
                a ``failed`` status, so the runner can retry.
        """
        log = self._log()
        log.info("sync_job_started", item_count=len(self.items))
        started = time.monotonic()

        try:
            stats = persistence.save_batch(self.items)
        except Exception as e:
            log.error("sync_job_failed", error=str(e), exc_info=True)
            status_store.record(
                self.session_id,
                self.provider,
                self.batch_number,
                SyncState.FAILED,
                {"error": str(e)},
            )
            raise

        duration = time.monotonic() - started
        status_store.record(
            self.session_id,
            self.provider,
            self.batch_number,
            SyncState.COMPLETED,
            stats.to_dict(),
        )
        log.info(
            "sync_job_completed",
            duration_seconds=round(duration, 3),
            items_per_second=round(len(self.items) / duration, 2) if duration > 0 else None,
            **stats.to_dict(),
        )
        return stats

    def fail_permanently(
        self,
        status_store: SyncStatusStore,
        error: BaseException | str | None,
        attempts: int,
    ) -> None:
        """Terminal failure hook, called once the attempt budget is spent."""
        self._log().error("sync_job_failed_permanently", error=str(error), attempts=attempts)
        status_store.record(
            self.session_id,
            self.provider,
            self.batch_number,
            SyncState.FAILED_PERMANENTLY,
            {"error": str(error), "attempts": attempts},
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "batch_number": self.batch_number,
            "session_id": self.session_id,
            "items": [item.to_payload() for item in self.items],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SyncJob:
        return cls(
            provider=payload["provider"],
            batch_number=int(payload["batch_number"]),
            session_id=payload["session_id"],
            items=[CanonicalItem.from_payload(item) for item in payload.get("items", [])],
        )


@dataclass
class JobOutcome:
    state: SyncState
    attempts: int
    stats: SaveStats | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is SyncState.COMPLETED


class JobRunner:
    """Runs ``SyncJob`` attempts in-process until success or the budget is spent.

    An attempt that overruns ``timeout_seconds`` is recorded as failed and
    given one more ``timeout_seconds`` to settle. If it saved the batch in
    that time the job is completed; if it is still running the job fails
    permanently, since a new attempt would overlap it. A job therefore never
    runs longer than ``2 * timeout_seconds`` per attempt.
    """

    def __init__(
        self,
        persistence: NewsPersistenceService,
        status_store: SyncStatusStore,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 30.0,
        timeout_seconds: float = 300.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._persistence = persistence
        self._status = status_store
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._timeout = timeout_seconds
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        persistence: NewsPersistenceService,
        status_store: SyncStatusStore,
        **kwargs: Any,
    ) -> JobRunner:
        return cls(
            persistence,
            status_store,
            max_attempts=settings.job_max_attempts,
            backoff_seconds=settings.job_backoff_seconds,
            timeout_seconds=settings.job_timeout_seconds,
            **kwargs,
        )

    def run(self, job: SyncJob) -> JobOutcome:
        """Returns the terminal outcome; never raises for job failures."""
        last_error: BaseException | None = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                stats = run_with_timeout(
                    job.handle,
                    self._timeout,
                    operation=job.label,
                    args=(self._persistence, self._status),
                )
                return JobOutcome(SyncState.COMPLETED, attempt, stats=stats)
            except JobTimeoutError as e:
                last_error = e
                self._status.record(
                    job.session_id,
                    job.provider,
                    job.batch_number,
                    SyncState.FAILED,
                    {"error": str(e), "attempt": attempt},
                )
                outcome = self._settle_timed_out(job, e, attempt)
                if outcome is not None:
                    return outcome
                if e.pending is not None and e.pending.exception() is not None:
                    last_error = e.pending.exception()
            except Exception as e:
                last_error = e

            logger.warning(
                "sync_job_attempt_failed",
                session_id=job.session_id,
                provider=job.provider,
                batch_number=job.batch_number,
                attempt=attempt,
                max_attempts=self._max_attempts,
                error=str(last_error),
            )
            if attempt < self._max_attempts and self._backoff > 0:
                self._sleep(self._backoff)

        job.fail_permanently(self._status, last_error, self._max_attempts)
        return JobOutcome(
            SyncState.FAILED_PERMANENTLY,
            self._max_attempts,
            error=str(last_error),
        )

    def _settle_timed_out(
        self, job: SyncJob, error: JobTimeoutError, attempt: int
    ) -> JobOutcome | None:
        """Give an overrun attempt one more timeout period to finish.

        Returns a terminal outcome if the attempt saved its batch after all,
        or if it is still running (another attempt would overlap it).
        Returns ``None`` when the attempt failed and may be retried.
        """
        pending = error.pending
        if pending is None:
            return None

        done, _ = concurrent.futures.wait([pending], timeout=self._timeout)
        if not done:
            job.fail_permanently(self._status, error, attempt)
            return JobOutcome(SyncState.FAILED_PERMANENTLY, attempt, error=str(error))

        if pending.exception() is not None:
            return None

        stats = pending.result()
        # The late attempt's own status write may have landed before ours.
        self._status.record(
            job.session_id,
            job.provider,
            job.batch_number,
            SyncState.COMPLETED,
            stats.to_dict(),
        )
        logger.info(
            "sync_job_completed_after_timeout",
            session_id=job.session_id,
            provider=job.provider,
            batch_number=job.batch_number,
            attempt=attempt,
        )
        return JobOutcome(SyncState.COMPLETED, attempt, stats=stats)
