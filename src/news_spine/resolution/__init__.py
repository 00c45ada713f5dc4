"""Entity resolution: categories, authors and sources."""

from news_spine.resolution.categories import CategoryResolver, generate_color
from news_spine.resolution.entities import EntityResolver
from news_spine.resolution.staging import StagedCache

__all__ = [
    "CategoryResolver",
    "EntityResolver",
    "StagedCache",
    "generate_color",
]
