"""Celery application configuration.

Each provider has its own queue (``sync_guardian``, ``sync_nytimes``,
``sync_newsapi``) so a slow or rate-limited provider only backs up its own
workers:

    celery -A news_spine.celery_app worker -Q sync_guardian -c 2
"""

from celery import Celery
from celery.signals import setup_logging
from kombu import Queue

from news_spine.config import get_settings
from news_spine.models import Provider

settings = get_settings()

celery_app = Celery(
    "news_spine",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=["news_spine.tasks"],
)

celery_app.conf.update(
    task_queues=[Queue(settings.queue_for(p)) for p in Provider.values()],
    task_default_queue=settings.queue_for(Provider.NEWSAPI.value),
    # One batch in flight per worker process, acked only after it finishes.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # Serialization
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    # Time settings
    timezone="UTC",
    enable_utc=True,
    result_expires=settings.status_ttl_seconds,
    task_track_started=True,
)


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    # Replaces Celery's own logging setup in workers.
    from news_spine.logging_config import configure_logging

    configure_logging()
