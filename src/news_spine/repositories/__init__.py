"""Session-scoped repositories over the news store."""

from news_spine.repositories.authors import AuthorRepository
from news_spine.repositories.categories import CategoryRepository
from news_spine.repositories.news import NewsRepository
from news_spine.repositories.sources import SourceRepository

__all__ = [
    "AuthorRepository",
    "CategoryRepository",
    "NewsRepository",
    "SourceRepository",
]
