"""Source repository. Sources are unique per (domain, provider) and (slug, provider)."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from news_spine.errors import ResolutionError
from news_spine.orm.tables import SourceTable
from news_spine.repositories.base import insert_ignore, slug_candidates
from news_spine.text import slugify

MAX_SLUG_PROBES = 100


class SourceRepository:
    def __init__(self, session: Session):
        self._session = session

    def get(self, source_id: int) -> SourceTable | None:
        return self._session.get(SourceTable, source_id)

    def get_by_domain(self, domain: str, provider: str) -> SourceTable | None:
        return self._session.scalar(
            select(SourceTable).where(
                SourceTable.domain == domain, SourceTable.provider == provider
            )
        )

    def get_by_slug(self, slug: str, provider: str) -> SourceTable | None:
        return self._session.scalar(
            select(SourceTable).where(SourceTable.slug == slug, SourceTable.provider == provider)
        )

    def find_or_create_by_domain(self, domain: str, provider: str, *, name: str) -> SourceTable:
        """Row for (domain, provider); a clashing slug gets a numeric suffix."""
        row = self.get_by_domain(domain, provider)
        if row is not None:
            return row

        base = slugify(name) or slugify(domain) or "source"
        for n, slug in enumerate(slug_candidates(base)):
            if n >= MAX_SLUG_PROBES:
                break
            insert_ignore(
                self._session,
                SourceTable,
                {
                    "name": name,
                    "slug": slug,
                    "domain": domain,
                    "provider": provider,
                    "website_url": f"https://{domain}",
                },
            )
            row = self.get_by_domain(domain, provider)
            if row is not None:
                return row
        raise ResolutionError(f"Could not create source {domain!r} for {provider}")

    def find_or_create_by_name(self, name: str, provider: str, *, domain: str) -> SourceTable:
        """Row for (slug(name), provider).

        If ``domain`` already belongs to another source of this provider, that
        source is the same publisher and is returned instead.
        """
        slug = slugify(name) or "source"
        row = self.get_by_slug(slug, provider)
        if row is not None:
            return row

        insert_ignore(
            self._session,
            SourceTable,
            {
                "name": name,
                "slug": slug,
                "domain": domain,
                "provider": provider,
                "website_url": f"https://{domain}",
            },
        )
        row = self.get_by_slug(slug, provider) or self.get_by_domain(domain, provider)
        if row is None:
            raise ResolutionError(f"Could not create source {name!r} for {provider}")
        return row
