"""Domain models for the news sync pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Provider(str, Enum):
    """The three supported external news sources."""

    NEWSAPI = "newsapi"
    GUARDIAN = "guardian"
    NYTIMES = "nytimes"

    @classmethod
    def values(cls) -> list[str]:
        return [p.value for p in cls]


class SyncState(str, Enum):
    """Lifecycle of one (provider, batch) sync job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    FAILED_PERMANENTLY = "failed_permanently"


@dataclass(frozen=True)
class CanonicalItem:
    """Provider-agnostic article, ready for persistence.

    Title and url are required; constructing an item without them raises, so
    transformers must reject such articles before building one.
    """

    unique_id: str
    title: str
    source_url: str
    provider: str
    description: str | None = None
    category_name: str | None = None
    author_name: str | None = None
    source_name: str | None = None
    source_domain: str | None = None
    published_at: datetime | None = None

    def __post_init__(self):
        if not self.unique_id:
            raise ValueError("unique_id is required")
        if not self.title or not self.title.strip():
            raise ValueError("title is required")
        if not self.source_url or not self.source_url.strip():
            raise ValueError("source_url is required")

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe dict for queue transport."""
        data = asdict(self)
        if self.published_at is not None:
            data["published_at"] = self.published_at.isoformat()
        return data

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> CanonicalItem:
        published_at = data.get("published_at")
        return cls(
            **{
                **data,
                "published_at": datetime.fromisoformat(published_at) if published_at else None,
            }
        )


@dataclass
class SaveStats:
    """Per-batch persistence counters."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def processed(self) -> int:
        return self.created + self.updated + self.skipped + self.errors

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class Category:
    """Detached snapshot of a category row, safe to cache as JSON."""

    id: int
    name: str
    slug: str
    color: str
    sort_order: int
    is_active: bool = True
    aliases: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(cls, row: Any) -> Category:
        return cls(
            id=row.id,
            name=row.name,
            slug=row.slug,
            color=row.color,
            sort_order=row.sort_order,
            is_active=bool(row.is_active),
            aliases=tuple(row.aliases or ()),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Category:
        return cls(**{**data, "aliases": tuple(data.get("aliases") or ())})

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["aliases"] = list(self.aliases)
        return data
