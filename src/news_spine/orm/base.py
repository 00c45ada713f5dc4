"""Declarative base and mixins for the news store.

Uses SQLAlchemy 2.0 ``DeclarativeBase`` with a ``type_annotation_map`` so
``Mapped`` columns can use plain Python types. Types are chosen to work on
both SQLite (tests, local runs) and PostgreSQL (production).

Mixins
------
* **TimestampMixin** -- ``created_at`` / ``updated_at`` defaulting to ``now()``.
"""

from __future__ import annotations

import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class NewsBase(DeclarativeBase):
    """Shared declarative base for every news-spine table.

    * ``str``   → ``Text``
    * ``int``   → ``Integer``
    * ``bool``  → ``Boolean``
    * ``datetime.datetime`` → ``DateTime(timezone=True)``
    * ``dict`` / ``list`` → ``JSON``
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Boolean,
        datetime.datetime: DateTime(timezone=True),
        dict: JSON,
        list: JSON,
    }


class TimestampMixin:
    """Adds ``created_at`` and ``updated_at``.

    ``updated_at`` is also bumped by the ORM on every UPDATE it issues.
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


# Slug/name columns are indexed and unique; bounded VARCHAR keeps them
# indexable on every backend.
ShortText = String(255)
