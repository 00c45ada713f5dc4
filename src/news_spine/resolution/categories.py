"""
Category resolution: free-text label → persisted category.

``CategoryResolver.resolve`` never returns ``None``. A label is matched by
exact name, then by slug, then by case-insensitive alias; anything else maps
to the default "General" category, which is created on first need.

Cache layout (shared backend, TTL from settings):
    category:{lower(trim(label))}  → Category snapshot dict
    default_category               → Category snapshot dict

Only hits are cached under the label key; a label that fell back to the
default is looked up again next time, so a later ``add_alias`` takes effect.
"""

from __future__ import annotations

import zlib
from collections.abc import Iterable
from typing import Any

import structlog
from sqlalchemy.orm import Session

from news_spine.cache import CacheBackend
from news_spine.errors import ResolutionError
from news_spine.models import Category
from news_spine.orm.tables import DEFAULT_CATEGORY_COLOR, CategoryTable
from news_spine.repositories.categories import CategoryRepository
from news_spine.resolution.staging import StagedCache
from news_spine.text import slugify

logger = structlog.get_logger(__name__)

CATEGORY_KEY_PREFIX = "category:"
DEFAULT_CATEGORY_KEY = "default_category"

DEFAULT_CATEGORY = {
    "name": "General",
    "slug": "general",
    "description": "General news articles",
    "color": DEFAULT_CATEGORY_COLOR,
    "sort_order": 999,
    "is_active": True,
    "aliases": ["general", "misc", "other", "news"],
}

PALETTE = [
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EC4899",
    "#EF4444",
    "#8B5CF6",
    "#6366F1",
    "#06B6D4",
    "#84CC16",
    "#F97316",
]


def generate_color(name: str) -> str:
    """Deterministic palette color for a category name."""
    return PALETTE[zlib.crc32(name.lower().encode("utf-8")) % len(PALETTE)]


def normalize_alias(alias: str) -> str:
    return alias.strip().lower()


class CategoryResolver:
    """Maps category labels to categories for one session.

    Example:
        resolver = CategoryResolver(session, cache)
        resolver.resolve("Tech").name       # "Technology" if aliased
        resolver.resolve(None).slug         # "general"
    """

    def __init__(
        self,
        session: Session,
        cache: CacheBackend,
        *,
        ttl_seconds: int | None = 3600,
        staging: StagedCache | None = None,
    ):
        self._repo = CategoryRepository(session)
        self._staging = staging or StagedCache(cache, ttl_seconds)

    @property
    def staging(self) -> StagedCache:
        return self._staging

    def resolve(self, name: str | None) -> Category:
        """Category for ``name``, falling back to the default."""
        return self.find(name) or self.default()

    def resolve_id(self, name: str | None) -> int:
        return self.resolve(name).id

    def find(self, name: str | None) -> Category | None:
        """Category for ``name``, or ``None`` when nothing matches."""
        if name is None or not name.strip():
            return None

        label = name.strip()
        key = CATEGORY_KEY_PREFIX + label.lower()
        cached = self._staging.get(key)
        if cached is not None:
            return Category.from_dict(cached)

        row = self._lookup(label)
        if row is None:
            return None

        category = Category.from_row(row)
        self._staging.put(key, category.to_dict())
        return category

    def _lookup(self, label: str) -> CategoryTable | None:
        row = self._repo.get_by_name(label)
        if row is not None:
            return row
        slug = slugify(label)
        if slug:
            row = self._repo.get_by_slug(slug)
            if row is not None:
                return row
        return self._repo.find_by_alias(label)

    def default(self) -> Category:
        """The "General" category, created if missing."""
        cached = self._staging.get(DEFAULT_CATEGORY_KEY)
        if cached is not None:
            return Category.from_dict(cached)

        row = self._repo.get_by_slug(DEFAULT_CATEGORY["slug"])
        if row is None:
            if self._repo.insert_ignore(**DEFAULT_CATEGORY):
                logger.info("default_category_created")
            row = self._repo.get_by_slug(DEFAULT_CATEGORY["slug"]) or self._repo.get_by_name(
                DEFAULT_CATEGORY["name"]
            )
        if row is None:
            raise ResolutionError("Default category could not be created")

        category = Category.from_row(row)
        self._staging.put(DEFAULT_CATEGORY_KEY, category.to_dict())
        return category

    def add_alias(self, category: Category | int, alias: str) -> bool:
        """Add a normalized alias if absent. Returns True if it was added."""
        normalized = normalize_alias(alias)
        if not normalized:
            return False
        category_id = category if isinstance(category, int) else category.id

        added = self._repo.add_alias(category_id, normalized)
        if added:
            self._staging.invalidate(CATEGORY_KEY_PREFIX + normalized)
            logger.info("category_alias_added", category_id=category_id, alias=normalized)
        return added

    def add_alias_to(self, category_name: str, alias: str) -> bool:
        """``add_alias`` for the category with exactly this name."""
        row = self._repo.get_by_name(category_name)
        if row is None:
            logger.warning("category_not_found", name=category_name)
            return False
        return self.add_alias(row.id, alias)

    def create_with_aliases(
        self,
        name: str,
        aliases: Iterable[str] = (),
        *,
        description: str | None = None,
    ) -> Category:
        """Create a category (or return the existing one with this slug)."""
        slug = slugify(name)
        if not slug:
            raise ValueError(f"Category name {name!r} has no usable slug")

        normalized: list[str] = []
        for alias in aliases:
            value = normalize_alias(alias)
            if value and value not in normalized:
                normalized.append(value)

        created = self._repo.insert_ignore(
            name=name,
            slug=slug,
            description=description,
            color=generate_color(name),
            sort_order=self._repo.max_sort_order() + 1,
            is_active=True,
            aliases=normalized,
        )
        row = self._repo.get_by_slug(slug) or self._repo.get_by_name(name)
        if row is None:
            raise ResolutionError(f"Category {name!r} could not be created")
        if created:
            logger.info("category_created", name=name, slug=slug, aliases=normalized)
        return Category.from_row(row)

    def clear_cache(self) -> None:
        self._staging.discard()
        backend = self._staging.backend
        backend.delete(DEFAULT_CATEGORY_KEY)
        backend.delete_prefix(CATEGORY_KEY_PREFIX)

    def stats(self) -> list[dict[str, Any]]:
        """Per-category article counts and share of all articles."""
        counts = self._repo.news_counts()
        total = sum(n for _, n in counts)
        return [
            {
                "id": row.id,
                "name": row.name,
                "slug": row.slug,
                "news_count": n,
                "percentage": round(n / total * 100, 2) if total else 0.0,
            }
            for row, n in counts
        ]
