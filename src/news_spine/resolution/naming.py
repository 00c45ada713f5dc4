"""Display names and domains for lazily created sources."""

from news_spine.models import Provider
from news_spine.text import capitalize_words

DEFAULT_SOURCE_NAMES = {
    Provider.NEWSAPI.value: "NewsAPI",
    Provider.GUARDIAN.value: "The Guardian",
    Provider.NYTIMES.value: "The New York Times",
}

KNOWN_BRANDS = {
    "bbc": "BBC",
    "cnn": "CNN",
    "nytimes": "The New York Times",
    "theguardian": "The Guardian",
    "techcrunch": "TechCrunch",
    "engadget": "Engadget",
    "reuters": "Reuters",
    "bloomberg": "Bloomberg",
}

KNOWN_DOMAINS = {
    "The Guardian": "theguardian.com",
    "The New York Times": "nytimes.com",
    "BBC": "bbc.co.uk",
    "CNN": "cnn.com",
    "Reuters": "reuters.com",
}

_STRIPPED_SUFFIXES = (".co.uk", ".com", ".org", ".net")


def default_source_name(provider: str) -> str:
    return DEFAULT_SOURCE_NAMES.get(provider, provider[:1].upper() + provider[1:])


def name_from_domain(domain: str) -> str:
    """``techcrunch.com`` → ``TechCrunch``, ``my-site.org`` → ``My Site``."""
    base = domain.lower().removeprefix("www.")
    for suffix in _STRIPPED_SUFFIXES:
        if base.endswith(suffix):
            base = base[: -len(suffix)]
            break
    if base in KNOWN_BRANDS:
        return KNOWN_BRANDS[base]
    return capitalize_words(base.replace("-", " ").replace("_", " "))


def domain_from_name(name: str) -> str:
    if name in KNOWN_DOMAINS:
        return KNOWN_DOMAINS[name]
    return name.replace(" ", "").lower() + ".com"
