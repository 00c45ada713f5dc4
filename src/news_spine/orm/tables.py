"""News store tables: categories, authors, sources and news.

Uniqueness constraints here are the authoritative de-duplication mechanism;
the repositories insert with ON CONFLICT DO NOTHING against them and re-read.
"""

from __future__ import annotations

import datetime

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from news_spine.orm.base import NewsBase, ShortText, TimestampMixin

DEFAULT_CATEGORY_COLOR = "#6B7280"


class CategoryTable(TimestampMixin, NewsBase):
    __tablename__ = "news_categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(ShortText, unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(ShortText, unique=True, nullable=False)
    description: Mapped[str | None]
    color: Mapped[str] = mapped_column(
        String(7), nullable=False, default=DEFAULT_CATEGORY_COLOR
    )
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)
    aliases: Mapped[list] = mapped_column(nullable=False, default=list)

    __table_args__ = (Index("ix_news_categories_active_sort", "is_active", "sort_order"),)


class AuthorTable(TimestampMixin, NewsBase):
    __tablename__ = "news_authors"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(ShortText, nullable=False, index=True)
    slug: Mapped[str] = mapped_column(ShortText, unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(ShortText)
    bio: Mapped[str | None]
    avatar_url: Mapped[str | None]
    social_links: Mapped[dict | None]
    is_verified: Mapped[bool] = mapped_column(nullable=False, default=False)


class SourceTable(TimestampMixin, NewsBase):
    __tablename__ = "news_sources"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(ShortText, nullable=False)
    slug: Mapped[str] = mapped_column(ShortText, nullable=False)
    domain: Mapped[str | None] = mapped_column(ShortText)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str | None]
    logo_url: Mapped[str | None]
    website_url: Mapped[str | None]
    country: Mapped[str | None] = mapped_column(String(2))
    language: Mapped[str] = mapped_column(String(2), nullable=False, default="en")
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("domain", "provider", name="uq_news_sources_domain_provider"),
        UniqueConstraint("slug", "provider", name="uq_news_sources_slug_provider"),
        Index("ix_news_sources_provider_active", "provider", "is_active"),
    )


class NewsTable(TimestampMixin, NewsBase):
    __tablename__ = "news"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    unique_id: Mapped[str] = mapped_column(ShortText, unique=True, nullable=False)
    title: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str | None]
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("news_categories.id", ondelete="SET NULL")
    )
    author_id: Mapped[int | None] = mapped_column(
        ForeignKey("news_authors.id", ondelete="SET NULL")
    )
    source_id: Mapped[int | None] = mapped_column(
        ForeignKey("news_sources.id", ondelete="SET NULL")
    )
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    source_url: Mapped[str] = mapped_column(nullable=False)
    published_at: Mapped[datetime.datetime | None] = mapped_column(index=True)

    __table_args__ = (
        Index("ix_news_category_published", "category_id", "published_at"),
        Index("ix_news_author_published", "author_id", "published_at"),
        Index("ix_news_source_published", "source_id", "published_at"),
        Index("ix_news_provider_published", "provider", "published_at"),
    )
