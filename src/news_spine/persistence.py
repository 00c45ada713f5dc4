"""
Idempotent persistence of canonical items.

One batch is one transaction. Each item runs in its own SAVEPOINT: a failing
item is rolled back alone, logged, and counted in ``errors``, while the items
before and after it commit together with the batch. Re-ingesting an unchanged
item is a no-op counted as ``skipped``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Literal

import structlog
from sqlalchemy.orm import Session, sessionmaker

from news_spine.cache import CacheBackend
from news_spine.errors import ResolutionError
from news_spine.models import CanonicalItem, SaveStats
from news_spine.orm.tables import NewsTable
from news_spine.repositories.news import NewsRepository
from news_spine.resolution.entities import EntityResolver

logger = structlog.get_logger(__name__)

Outcome = Literal["created", "updated", "skipped"]


class NewsPersistenceService:
    """Saves canonical items into the news store.

    Example:
        service = NewsPersistenceService(session_factory, cache)
        stats = service.save_batch(items)
        stats.to_dict()   # {"created": 2, "updated": 0, "skipped": 1, "errors": 0}
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        cache: CacheBackend,
        *,
        cache_ttl_seconds: int | None = 3600,
    ):
        self._session_factory = session_factory
        self._cache = cache
        self._cache_ttl = cache_ttl_seconds

    def save_batch(self, items: Iterable[Any]) -> SaveStats:
        """Persist ``items``; per-item failures are counted, not raised.

        Raises:
            Exception: Only for failures of the batch transaction itself
                (store unavailable, commit failure).
        """
        stats = SaveStats()

        with self._session_factory() as session:
            resolver = EntityResolver(session, self._cache, ttl_seconds=self._cache_ttl)
            try:
                with session.begin():
                    for item in items:
                        if not isinstance(item, CanonicalItem):
                            logger.warning("invalid_item_skipped", item_type=type(item).__name__)
                            stats.skipped += 1
                            continue

                        try:
                            with session.begin_nested(), resolver.item_scope():
                                outcome, _ = self._save_item(session, resolver, item)
                        except Exception as e:
                            stats.errors += 1
                            logger.error(
                                "news_item_save_failed",
                                unique_id=item.unique_id,
                                provider=item.provider,
                                error=str(e),
                                exc_info=True,
                            )
                            continue

                        setattr(stats, outcome, getattr(stats, outcome) + 1)
            except Exception:
                resolver.discard()
                raise

            resolver.publish()

        logger.info("news_batch_saved", **stats.to_dict())
        return stats

    def save_one(self, item: CanonicalItem) -> NewsTable | None:
        """Persist one item; returns the stored row, or ``None`` on failure."""
        with self._session_factory() as session:
            resolver = EntityResolver(session, self._cache, ttl_seconds=self._cache_ttl)
            try:
                with session.begin():
                    outcome, row = self._save_item(session, resolver, item)
                    # Load server-side timestamps before the row is detached.
                    session.refresh(row)
            except Exception as e:
                resolver.discard()
                logger.error(
                    "news_item_save_failed",
                    unique_id=getattr(item, "unique_id", None),
                    error=str(e),
                    exc_info=True,
                )
                return None

            resolver.publish()

        logger.debug("news_item_saved", unique_id=item.unique_id, outcome=outcome)
        return row

    def _save_item(
        self,
        session: Session,
        resolver: EntityResolver,
        item: CanonicalItem,
    ) -> tuple[Outcome, NewsTable]:
        values = {
            "title": item.title,
            "description": item.description,
            "category_id": resolver.resolve_category_id(item.category_name),
            "author_id": resolver.resolve_author_id(item.author_name),
            "source_id": resolver.resolve_source_id(
                item.provider, item.source_name, item.source_domain
            ),
            "provider": item.provider,
            "source_url": item.source_url,
            "published_at": item.published_at,
        }

        news = NewsRepository(session)
        row = news.get_by_unique_id(item.unique_id)
        if row is None:
            if news.insert_ignore({"unique_id": item.unique_id, **values}):
                return "created", news.get_by_unique_id(item.unique_id)
            # Lost an insert race; compare against the winner.
            row = news.get_by_unique_id(item.unique_id)
            if row is None:
                raise ResolutionError(f"News {item.unique_id} vanished after conflict")

        if not news.has_changed(row, values):
            return "skipped", row

        news.update(row, values)
        return "updated", row
