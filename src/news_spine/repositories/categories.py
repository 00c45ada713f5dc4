"""Category repository."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from news_spine.orm.tables import CategoryTable, NewsTable
from news_spine.repositories.base import insert_ignore


class CategoryRepository:
    """Category lookups and writes within one session."""

    def __init__(self, session: Session):
        self._session = session

    def get(self, category_id: int) -> CategoryTable | None:
        return self._session.get(CategoryTable, category_id)

    def get_by_name(self, name: str) -> CategoryTable | None:
        return self._session.scalar(select(CategoryTable).where(CategoryTable.name == name))

    def get_by_slug(self, slug: str) -> CategoryTable | None:
        return self._session.scalar(select(CategoryTable).where(CategoryTable.slug == slug))

    def find_by_alias(self, alias: str) -> CategoryTable | None:
        """Case-insensitive alias membership.

        Aliases live in a JSON list, which has no portable containment
        operator, so the (small) category table is scanned in sort order.
        """
        needle = alias.strip().lower()
        rows = self._session.scalars(
            select(CategoryTable).order_by(CategoryTable.sort_order, CategoryTable.id)
        )
        for row in rows:
            if needle in {a.lower() for a in row.aliases or ()}:
                return row
        return None

    def insert_ignore(self, **values) -> bool:
        return insert_ignore(self._session, CategoryTable, values)

    def add_alias(self, category_id: int, alias: str) -> bool:
        """Append ``alias`` (already normalized) unless present. True if added."""
        row = self._session.get(CategoryTable, category_id, with_for_update=True)
        if row is None:
            return False
        current = list(row.aliases or [])
        if alias in {a.lower() for a in current}:
            return False
        # Reassign so the JSON column is flagged dirty.
        row.aliases = [*current, alias]
        self._session.flush()
        return True

    def max_sort_order(self) -> int:
        return self._session.scalar(select(func.coalesce(func.max(CategoryTable.sort_order), 0)))

    def news_counts(self) -> list[tuple[CategoryTable, int]]:
        stmt = (
            select(CategoryTable, func.count(NewsTable.id))
            .outerjoin(NewsTable, NewsTable.category_id == CategoryTable.id)
            .group_by(CategoryTable.id)
            .order_by(CategoryTable.sort_order, CategoryTable.name)
        )
        return [(row, int(n)) for row, n in self._session.execute(stmt)]
