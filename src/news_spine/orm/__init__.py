"""ORM layer for the news store."""

from news_spine.orm.base import NewsBase, TimestampMixin
from news_spine.orm.tables import AuthorTable, CategoryTable, NewsTable, SourceTable

__all__ = [
    "AuthorTable",
    "CategoryTable",
    "NewsBase",
    "NewsTable",
    "SourceTable",
    "TimestampMixin",
]
