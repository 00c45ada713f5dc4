"""Helpers shared by the session-scoped repositories."""

from collections.abc import Iterator
from itertools import count
from typing import Any

from sqlalchemy.orm import Session

from news_spine.db import insert_ignoring_conflicts
from news_spine.orm.base import NewsBase


def insert_ignore(session: Session, table: type[NewsBase], values: dict[str, Any]) -> bool:
    """Insert one row unless it clashes with a unique constraint.

    Returns True if this call created the row.
    """
    result = session.execute(insert_ignoring_conflicts(session, table).values(**values))
    return result.rowcount == 1


def slug_candidates(base: str) -> Iterator[str]:
    """``base``, ``base-1``, ``base-2``, …"""
    yield base
    for n in count(1):
        yield f"{base}-{n}"
