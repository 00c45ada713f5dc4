"""Celery tasks for batch persistence."""

import structlog

from news_spine.celery_app import celery_app, settings
from news_spine.sync.job import SyncJob

logger = structlog.get_logger(__name__)


@celery_app.task(
    bind=True,
    name="news_spine.tasks.sync_news_batch",
    max_retries=settings.job_max_attempts - 1,
    default_retry_delay=settings.job_backoff_seconds,
    soft_time_limit=settings.job_timeout_seconds,
    time_limit=settings.job_timeout_seconds + 30,
    acks_late=True,
)
def sync_news_batch(self, payload: dict) -> dict:
    """Persist one provider batch.

    Failed attempts are retried with a fixed countdown; after the last
    attempt the batch is marked ``failed_permanently`` and the error is
    re-raised so Celery records the failure.
    """
    from news_spine.services import get_services

    job = SyncJob.from_payload(payload)
    services = get_services()
    attempt = self.request.retries + 1

    log = logger.bind(
        task_id=self.request.id,
        session_id=job.session_id,
        provider=job.provider,
        batch_number=job.batch_number,
        attempt=attempt,
    )
    log.info("celery_task_started", item_count=len(job.items))

    try:
        stats = job.handle(services.persistence, services.status_store)
    except Exception as e:
        if self.request.retries >= self.max_retries:
            job.fail_permanently(services.status_store, e, attempt)
            raise
        log.warning("celery_task_retrying", error=str(e))
        raise self.retry(exc=e)

    log.info("celery_task_completed", **stats.to_dict())
    return stats.to_dict()
