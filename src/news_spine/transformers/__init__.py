"""Pure transforms from provider-native articles to ``CanonicalItem``."""

from news_spine.errors import ConfigError
from news_spine.models import Provider
from news_spine.transformers.base import Transformer, transform_all
from news_spine.transformers.guardian import GuardianTransformer
from news_spine.transformers.newsapi import NewsAPITransformer
from news_spine.transformers.nytimes import NYTimesTransformer


def transformer_for(provider: str, *, source_categories: dict[str, str] | None = None) -> Transformer:
    """Return the transformer for ``provider``."""
    if provider == Provider.GUARDIAN.value:
        return GuardianTransformer()
    if provider == Provider.NYTIMES.value:
        return NYTimesTransformer()
    if provider == Provider.NEWSAPI.value:
        return NewsAPITransformer(source_categories)
    raise ConfigError(f"Unknown provider: {provider}")


__all__ = [
    "GuardianTransformer",
    "NYTimesTransformer",
    "NewsAPITransformer",
    "Transformer",
    "transform_all",
    "transformer_for",
]
