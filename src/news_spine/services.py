"""Process-wide wiring of cache, store, persistence and status store.

Workers and in-process runs build the pipeline from settings once per
process and share it between jobs.
"""

from __future__ import annotations

from dataclasses import dataclass

from news_spine.cache import CacheBackend, build_cache
from news_spine.config import Settings, get_settings
from news_spine.db import get_session_factory
from news_spine.persistence import NewsPersistenceService
from news_spine.sync.status import SyncStatusStore


@dataclass
class Services:
    settings: Settings
    cache: CacheBackend
    persistence: NewsPersistenceService
    status_store: SyncStatusStore


_services: Services | None = None


def get_services() -> Services:
    global _services
    if _services is None:
        settings = get_settings()
        cache = build_cache(settings)
        _services = Services(
            settings=settings,
            cache=cache,
            persistence=NewsPersistenceService(
                get_session_factory(), cache, cache_ttl_seconds=settings.cache_ttl_seconds
            ),
            status_store=SyncStatusStore(
                cache,
                ttl_seconds=settings.status_ttl_seconds,
                scan_batches=settings.status_scan_batches,
            ),
        )
    return _services


def set_services(services: Services | None) -> None:
    """Install (or clear, with ``None``) the process services. For tests."""
    global _services
    _services = services
