"""News repository."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from news_spine.orm.tables import NewsTable
from news_spine.repositories.base import insert_ignore

# Columns compared to decide whether a re-ingested article changed.
CHANGE_FIELDS = ("title", "description", "category_id", "author_id", "source_id")


class NewsRepository:
    def __init__(self, session: Session):
        self._session = session

    def get_by_unique_id(self, unique_id: str) -> NewsTable | None:
        return self._session.scalar(select(NewsTable).where(NewsTable.unique_id == unique_id))

    def insert_ignore(self, values: dict[str, Any]) -> bool:
        """Insert unless ``unique_id`` exists. True if this call created it."""
        return insert_ignore(self._session, NewsTable, values)

    @staticmethod
    def has_changed(row: NewsTable, values: dict[str, Any]) -> bool:
        return any(getattr(row, name) != values.get(name) for name in CHANGE_FIELDS)

    def update(self, row: NewsTable, values: dict[str, Any]) -> NewsTable:
        for name, value in values.items():
            setattr(row, name, value)
        self._session.flush()
        return row

    def count(self) -> int:
        return self._session.scalar(select(func.count(NewsTable.id)))
