"""
agora.database.engine — Database Connection & Session Helpers
==============================================================

One process-wide :class:`Engine` (and its connection pool) is created by
:func:`create_db_engine` and handed explicitly to every service function.
Services open short-lived sessions through :func:`guarded_session`, which
commits on success, rolls back on failure, and turns any SQLAlchemy error
into a generic :class:`~agora.errors.InternalError` after logging it.

Usage::

    from agora.database.engine import create_db_engine, guarded_session, init_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    with guarded_session(engine, "create topic") as session:
        session.add(topic)

Async callers (the auth gate) reach the synchronous ORM through
:func:`run_db`, which ships the call to a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine, event, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agora.database.models import Base
from agora.errors import InternalError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# Pool settings for server databases; SQLite keeps SQLAlchemy's defaults.
_POOL_OPTIONS = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_pre_ping": True,
    "pool_timeout": 10,
    "pool_recycle": 3600,
}


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def database_url() -> str:
    """``DATABASE_URL`` with legacy ``postgres://`` rewritten for SQLAlchemy.

    Raises ``RuntimeError`` when the variable is unset or blank.
    """
    raw = os.getenv("DATABASE_URL", "").strip()
    if not raw:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and point it at the forum database."
        )
    if raw.startswith("postgres://"):
        raw = "postgresql://" + raw.removeprefix("postgres://")
    return raw


def create_db_engine() -> Engine:
    """Engine for :func:`database_url`.

    SQLite URLs get foreign-key enforcement switched on so RESTRICT/CASCADE
    behave as on PostgreSQL.
    """
    url = make_url(database_url())
    options = {} if url.get_backend_name() == "sqlite" else _POOL_OPTIONS
    engine = create_engine(url, **options)
    enable_sqlite_foreign_keys(engine)
    logger.info("Connected engine for %s database %r", url.get_backend_name(), url.database)
    return engine


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement for SQLite connections (no-op elsewhere).

    SQLite ignores ``FOREIGN KEY`` clauses unless asked per connection, which
    would let RESTRICT/CASCADE rules silently diverge from PostgreSQL.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """``CREATE TABLE`` for every model that is missing.

    Deployed databases are migrated with ``alembic upgrade head``; this is
    for tests and throwaway local databases.
    """
    Base.metadata.create_all(engine)
    logger.info("Schema ensured on %s", engine.url.get_backend_name())


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.

    ``expire_on_commit`` is off so rows returned to route handlers keep their
    loaded attributes after the session closes.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def guarded_session(engine: Engine, action: str) -> Iterator[Session]:
    """Like :func:`get_session`, but persistence failures become
    :class:`InternalError`.

    Application errors (``NotFoundError`` etc.) raised inside the block pass
    through untouched; only :class:`SQLAlchemyError` is translated, so a
    missing row can never surface as a 500.
    """
    try:
        with get_session(engine) as session:
            yield session
    except SQLAlchemyError:
        logger.exception("Database failure during %s", action)
        raise InternalError() from None


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Used by async dependencies so the event loop is never blocked::

        user = await run_db(user_service.find_user, engine, user_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
