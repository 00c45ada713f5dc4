"""
Entity resolution for one persistence unit.

Maps the loose category/author/source mentions on a canonical item to
persisted ids. Lookups go through the shared cache first; misses are
find-or-created in the store with insert-on-conflict and a re-read, so
concurrent workers resolving the same name end up on the same row.

Cache layout:
    author_id:{lower(clean name)}             → author id
    source_id:{provider}:{lower(domain|name)} → source id
    default_source_id:{provider}              → source id
    (categories: see news_spine.resolution.categories)

New cache entries are staged and only published after the caller's
transaction commits (see ``StagedCache``).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy.orm import Session

from news_spine.cache import CacheBackend
from news_spine.repositories.authors import AuthorRepository
from news_spine.repositories.sources import SourceRepository
from news_spine.resolution.categories import CategoryResolver
from news_spine.resolution.naming import (
    default_source_name,
    domain_from_name,
    name_from_domain,
)
from news_spine.resolution.staging import StagedCache
from news_spine.text import blank_to_none, clean_author_name

logger = structlog.get_logger(__name__)

MIN_AUTHOR_NAME_LENGTH = 2


class EntityResolver:
    def __init__(
        self,
        session: Session,
        cache: CacheBackend,
        *,
        ttl_seconds: int | None = 3600,
    ):
        self._staging = StagedCache(cache, ttl_seconds)
        self._authors = AuthorRepository(session)
        self._sources = SourceRepository(session)
        self.categories = CategoryResolver(session, cache, staging=self._staging)

    # --- unit-of-work hooks ---

    def publish(self) -> int:
        """Publish staged cache entries; call after the transaction commits."""
        return self._staging.publish()

    def discard(self) -> None:
        """Drop staged cache entries; call after the transaction rolls back."""
        self._staging.discard()

    @contextmanager
    def item_scope(self) -> Iterator[None]:
        """Forget entries staged by a failing item."""
        with self._staging.savepoint():
            yield

    # --- categories ---

    def resolve_category_id(self, name: str | None) -> int:
        return self.categories.resolve_id(name)

    # --- authors ---

    def resolve_author_id(self, name: str | None) -> int | None:
        """Author id for a byline, or ``None`` for names under two characters."""
        if name is None or len(name.strip()) < MIN_AUTHOR_NAME_LENGTH:
            return None
        cleaned = clean_author_name(name)
        if cleaned is None or len(cleaned) < MIN_AUTHOR_NAME_LENGTH:
            return None

        key = f"author_id:{cleaned.lower()}"
        cached = self._staging.get(key)
        if cached is not None:
            return int(cached)

        author = self._authors.find_or_create(cleaned)
        self._staging.put(key, author.id)
        return author.id

    def create_author(self, name: str) -> int:
        """Create a new author even if one with this name exists."""
        cleaned = clean_author_name(name)
        if cleaned is None:
            raise ValueError(f"Author name {name!r} is empty after cleaning")
        author = self._authors.create(cleaned)
        logger.info("author_created", author_id=author.id, slug=author.slug)
        return author.id

    # --- sources ---

    def resolve_source_id(
        self,
        provider: str,
        source_name: str | None = None,
        domain: str | None = None,
    ) -> int:
        """Source id, preferring domain identity over the display name."""
        name = blank_to_none(source_name)
        domain = blank_to_none(domain)
        if domain is not None:
            domain = domain.lower().removeprefix("www.")

        if name is None and domain is None:
            return self._default_source_id(provider)

        key = f"source_id:{provider}:{(domain or name).lower()}"
        cached = self._staging.get(key)
        if cached is not None:
            return int(cached)

        if domain is not None:
            source = self._sources.find_or_create_by_domain(
                domain, provider, name=name_from_domain(domain)
            )
        else:
            source = self._sources.find_or_create_by_name(
                name, provider, domain=domain_from_name(name)
            )

        self._staging.put(key, source.id)
        return source.id

    def _default_source_id(self, provider: str) -> int:
        key = f"default_source_id:{provider}"
        cached = self._staging.get(key)
        if cached is not None:
            return int(cached)

        name = default_source_name(provider)
        source = self._sources.find_or_create_by_name(
            name, provider, domain=domain_from_name(name)
        )
        self._staging.put(key, source.id)
        return source.id
