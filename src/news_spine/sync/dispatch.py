"""Hand a sync job to the in-process runner or to its provider's Celery queue."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from news_spine.config import Settings, get_settings
from news_spine.models import SyncState
from news_spine.sync.job import JobOutcome, JobRunner, SyncJob
from news_spine.sync.status import SyncStatusStore

logger = structlog.get_logger(__name__)


@dataclass
class DispatchReceipt:
    job: SyncJob
    queue: str | None = None
    task_id: str | None = None
    outcome: JobOutcome | None = None

    @property
    def queued(self) -> bool:
        return self.task_id is not None


class JobDispatcher:
    def __init__(
        self,
        status_store: SyncStatusStore,
        runner: JobRunner | None = None,
        *,
        settings: Settings | None = None,
    ):
        self._status = status_store
        self._runner = runner
        self._settings = settings or get_settings()

    def dispatch(self, job: SyncJob, *, run_synchronously: bool = False) -> DispatchReceipt:
        """Record the batch as pending, then run it here or enqueue it."""
        self._status.record(
            job.session_id,
            job.provider,
            job.batch_number,
            SyncState.PENDING,
            {"items": len(job.items)},
        )

        if run_synchronously:
            if self._runner is None:
                raise RuntimeError("Synchronous dispatch needs a JobRunner")
            outcome = self._runner.run(job)
            return DispatchReceipt(job, outcome=outcome)

        from news_spine.tasks import sync_news_batch

        queue = self._settings.queue_for(job.provider)
        result = sync_news_batch.apply_async(args=[job.to_payload()], queue=queue)
        logger.info(
            "sync_job_queued",
            session_id=job.session_id,
            provider=job.provider,
            batch_number=job.batch_number,
            queue=queue,
            task_id=result.id,
        )
        return DispatchReceipt(job, queue=queue, task_id=result.id)
