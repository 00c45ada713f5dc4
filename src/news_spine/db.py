"""Engine and session management for the news store.

* ``create_engine_from_url`` -- SQLAlchemy engine with per-dialect setup.
* ``session_factory``        -- ``sessionmaker`` with ``expire_on_commit=False``.
* ``init_db``                -- create all tables.
* ``insert_ignoring_conflicts`` -- dialect ``INSERT ... ON CONFLICT DO NOTHING``.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.dml import Insert

from news_spine.errors import ConfigError
from news_spine.orm.base import NewsBase

logger = structlog.get_logger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_engine_from_url(
    url: str,
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        ``sqlite:///…`` for local runs and tests, ``postgresql+psycopg://…``
        in production.
    echo:
        If ``True``, log all SQL.
    pool_size, max_overflow:
        Connection pool parameters (ignored for SQLite).
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if _is_memory_sqlite(url):
            # One shared connection, otherwise every thread gets its own
            # empty database.
            kwargs.setdefault("poolclass", StaticPool)

        engine = create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _configure_sqlite(dbapi_connection: Any, _rec: Any) -> None:
            # Let SQLAlchemy emit BEGIN itself so SAVEPOINT works.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

        return engine

    pool_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow

    return create_engine(url, echo=echo, **pool_kwargs, **kwargs)


def session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a ``sessionmaker`` bound to *engine*."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all news-spine tables that do not exist yet."""
    logger.info("init_db", dialect=engine.dialect.name)
    NewsBase.metadata.create_all(engine)


def insert_ignoring_conflicts(session: Session, table: type[NewsBase]) -> Insert:
    """Build ``INSERT ... ON CONFLICT DO NOTHING`` for the session's dialect.

    No conflict target is given, so a clash on any unique constraint of
    ``table`` turns the insert into a no-op (rowcount 0).
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise ConfigError(f"Unsupported database dialect: {dialect}")
    return insert(table).on_conflict_do_nothing()


_session_factory: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    """Process-wide session factory built from settings (worker entry points)."""
    global _session_factory
    if _session_factory is None:
        from news_spine.config import get_settings

        settings = get_settings()
        engine = create_engine_from_url(settings.database_url, echo=settings.database_echo)
        init_db(engine)
        _session_factory = session_factory(engine)
    return _session_factory
