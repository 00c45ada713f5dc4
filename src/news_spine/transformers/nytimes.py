"""New York Times Article Search docs → canonical items."""

from news_spine.models import CanonicalItem, Provider
from news_spine.text import blank_to_none, clean_author_name, make_unique_id, parse_timestamp
from news_spine.transformers.base import RawArticle, dig, transform_all

SOURCE_NAME = "The New York Times"
SOURCE_DOMAIN = "nytimes.com"
MAX_BYLINE_AUTHORS = 3


def byline_author(byline: object) -> str | None:
    """Join up to three ``person`` entries, else fall back to the original byline."""
    if not isinstance(byline, dict):
        return None

    persons = byline.get("person")
    if isinstance(persons, list) and persons:
        names = []
        for person in persons:
            if not isinstance(person, dict):
                continue
            parts = (
                blank_to_none(person.get("firstname")),
                blank_to_none(person.get("lastname")),
            )
            name = clean_author_name(" ".join(part for part in parts if part))
            if name:
                names.append(name)
            if len(names) == MAX_BYLINE_AUTHORS:
                break
        if names:
            return ", ".join(names)

    return clean_author_name(blank_to_none(byline.get("original")))


class NYTimesTransformer:
    provider = Provider.NYTIMES.value

    def to_canonical(self, raw: RawArticle) -> CanonicalItem | None:
        headline = blank_to_none(dig(raw, "headline", "main"))
        web_url = blank_to_none(raw.get("web_url"))
        if headline is None or web_url is None:
            return None

        return CanonicalItem(
            unique_id=make_unique_id(self.provider, blank_to_none(raw.get("_id")) or web_url),
            title=headline,
            description=(
                blank_to_none(raw.get("abstract"))
                or blank_to_none(raw.get("lead_paragraph"))
                or blank_to_none(raw.get("snippet"))
            ),
            category_name=blank_to_none(raw.get("section_name")),
            author_name=byline_author(raw.get("byline")),
            source_name=SOURCE_NAME,
            source_domain=SOURCE_DOMAIN,
            provider=self.provider,
            source_url=web_url,
            published_at=parse_timestamp(raw.get("pub_date")),
        )

    def transform_batch(self, raws):
        return transform_all(self.to_canonical, raws)
