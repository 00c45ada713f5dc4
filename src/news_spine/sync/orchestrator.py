"""
Sync orchestration: paginate providers, transform pages, dispatch batch jobs.

One ``run`` is one sync session with a fresh UUID. Every provider is paged
sequentially with a fixed pause between pages. An empty page ends that
provider's run. Per-page exceptions are recorded and the run continues.

Usage:
    orchestrator = SyncOrchestrator.from_settings(get_settings())
    report = orchestrator.run(SyncRequest(provider="guardian", total_records=30))
    report.session_id   # feed to SyncStatusStore.summarize()
"""

from __future__ import annotations

import math
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time as dtime, timedelta

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from news_spine.models import Provider
from news_spine.providers import NewsAPIProvider, NewsProvider, build_provider
from news_spine.sync.dispatch import JobDispatcher
from news_spine.sync.job import SyncJob
from news_spine.transformers import Transformer, transformer_for

logger = structlog.get_logger(__name__)


class SyncRequest(BaseModel):
    """Validated parameters of one sync run."""

    model_config = ConfigDict(frozen=True)

    provider: Provider | None = None
    total_records: int = Field(50, ge=1, le=1000)
    per_page: int = Field(10, ge=1, le=100)
    from_date: date | None = None
    to_date: date | None = None
    use_yesterday: bool = False
    dry_run: bool = False
    run_synchronously: bool = False

    @model_validator(mode="after")
    def _check_window(self) -> SyncRequest:
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError("from_date must be on or before to_date")
        return self

    @property
    def page_count(self) -> int:
        return math.ceil(self.total_records / self.per_page)

    @property
    def providers(self) -> list[str]:
        if self.provider is None:
            return Provider.values()
        return [self.provider.value]

    def window(self, today: date | None = None) -> tuple[datetime, datetime]:
        """Start-of-day to end-of-day bounds; missing dates mean yesterday."""
        yesterday = (today or date.today()) - timedelta(days=1)
        start_day = yesterday if self.use_yesterday else (self.from_date or yesterday)
        end_day = yesterday if self.use_yesterday else (self.to_date or yesterday)
        start = datetime.combine(start_day, dtime.min)
        end = datetime.combine(end_day, dtime(23, 59, 59))
        if start > end:
            raise ValueError(f"from_date {start_day} is after to_date {end_day}")
        return start, end


@dataclass
class ProviderRunStats:
    pages_fetched: int = 0
    items_fetched: int = 0
    jobs_dispatched: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class SyncReport:
    session_id: str
    dry_run: bool
    window: tuple[datetime, datetime]
    providers: dict[str, ProviderRunStats] = field(default_factory=dict)

    @property
    def items_fetched(self) -> int:
        return sum(p.items_fetched for p in self.providers.values())

    @property
    def jobs_dispatched(self) -> int:
        return sum(p.jobs_dispatched for p in self.providers.values())

    @property
    def errors(self) -> list[str]:
        return [f"{name}: {e}" for name, p in self.providers.items() for e in p.errors]


class SyncOrchestrator:
    def __init__(
        self,
        provider_factory: Callable[[str], NewsProvider],
        dispatcher: JobDispatcher,
        *,
        page_delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._provider_factory = provider_factory
        self._dispatcher = dispatcher
        self._page_delay = page_delay_seconds
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings=None) -> SyncOrchestrator:
        """Orchestrator wired from settings: real adapters, shared services."""
        from news_spine.services import get_services
        from news_spine.sync.job import JobRunner

        services = get_services()
        settings = settings or services.settings
        runner = JobRunner.from_settings(settings, services.persistence, services.status_store)
        return cls(
            lambda name: build_provider(name, settings, cache=services.cache),
            JobDispatcher(services.status_store, runner, settings=settings),
            page_delay_seconds=settings.page_delay_seconds,
        )

    def run(self, request: SyncRequest, *, today: date | None = None) -> SyncReport:
        session_id = str(uuid.uuid4())
        start, end = request.window(today)
        report = SyncReport(session_id=session_id, dry_run=request.dry_run, window=(start, end))

        structlog.contextvars.bind_contextvars(session_id=session_id)
        try:
            logger.info(
                "sync_started",
                providers=request.providers,
                pages=request.page_count,
                per_page=request.per_page,
                from_date=start.isoformat(),
                to_date=end.isoformat(),
                dry_run=request.dry_run,
            )
            for name in request.providers:
                report.providers[name] = self._sync_provider(name, request, session_id, start, end)
            logger.info(
                "sync_finished",
                items_fetched=report.items_fetched,
                jobs_dispatched=report.jobs_dispatched,
                errors=len(report.errors),
            )
        finally:
            structlog.contextvars.unbind_contextvars("session_id")
        return report

    def _transformer(self, provider: NewsProvider) -> Transformer:
        if isinstance(provider, NewsAPIProvider):
            return transformer_for(provider.name, source_categories=provider.sources())
        return transformer_for(provider.name)

    def _sync_provider(
        self,
        name: str,
        request: SyncRequest,
        session_id: str,
        start: datetime,
        end: datetime,
    ) -> ProviderRunStats:
        stats = ProviderRunStats()
        log = logger.bind(provider=name)

        try:
            provider = self._provider_factory(name)
            transformer = self._transformer(provider)
        except Exception as e:
            log.error("provider_setup_failed", error=str(e))
            stats.errors.append(f"setup: {e}")
            return stats

        for page in range(1, request.page_count + 1):
            try:
                raw = provider.fetch_page(page, request.per_page, start, end)
                if not raw:
                    log.info("provider_exhausted", page=page)
                    break
                stats.pages_fetched += 1

                items = transformer.transform_batch(raw)
                stats.items_fetched += len(items)

                if items and not request.dry_run:
                    self._dispatcher.dispatch(
                        SyncJob(name, page, session_id, items),
                        run_synchronously=request.run_synchronously,
                    )
                    stats.jobs_dispatched += 1
            except Exception as e:
                log.error("sync_page_failed", page=page, error=str(e), exc_info=True)
                stats.errors.append(f"page {page}: {e}")

            if page < request.page_count:
                self._sleep(self._page_delay)

        log.info(
            "provider_sync_finished",
            pages_fetched=stats.pages_fetched,
            items_fetched=stats.items_fetched,
            jobs_dispatched=stats.jobs_dispatched,
            errors=len(stats.errors),
        )
        return stats
