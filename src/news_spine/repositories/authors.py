"""Author repository with collision-safe slugs."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from news_spine.errors import ResolutionError
from news_spine.orm.tables import AuthorTable
from news_spine.repositories.base import insert_ignore, slug_candidates
from news_spine.text import slugify

MAX_SLUG_PROBES = 1000


def author_slug_base(name: str) -> str:
    return slugify(name) or "author"


class AuthorRepository:
    def __init__(self, session: Session):
        self._session = session

    def get(self, author_id: int) -> AuthorTable | None:
        return self._session.get(AuthorTable, author_id)

    def get_by_slug(self, slug: str) -> AuthorTable | None:
        return self._session.scalar(select(AuthorTable).where(AuthorTable.slug == slug))

    def find_or_create(self, name: str) -> AuthorTable:
        """Row whose name matches ``name`` (case-insensitively), created if needed.

        Walks ``slug``, ``slug-1``, … ; a slug held by a differently named
        author is a collision and the walk moves on. Concurrent callers with
        the same name converge on one row through the slug constraint.
        """
        wanted = name.lower()
        for slug in self._candidate_slugs(author_slug_base(name)):
            row = self.get_by_slug(slug)
            if row is None:
                insert_ignore(self._session, AuthorTable, {"name": name, "slug": slug})
                row = self.get_by_slug(slug)
            if row is not None and row.name.lower() == wanted:
                return row
        raise ResolutionError(f"No free author slug for {name!r}")

    def create(self, name: str) -> AuthorTable:
        """Always create a new author at the first free slug."""
        for slug in self._candidate_slugs(author_slug_base(name)):
            if insert_ignore(self._session, AuthorTable, {"name": name, "slug": slug}):
                return self.get_by_slug(slug)
        raise ResolutionError(f"No free author slug for {name!r}")

    @staticmethod
    def _candidate_slugs(base: str):
        for n, slug in enumerate(slug_candidates(base)):
            if n >= MAX_SLUG_PROBES:
                return
            yield slug
