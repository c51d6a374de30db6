"""
Engine, session factory and declarative base.

SQLite (local runs and tests) gets foreign keys switched on per connection;
PostgreSQL gets a small pre-pinged pool.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, declarative_base, sessionmaker

from ..core.config import settings

logger = logging.getLogger(__name__)

POSTGRES_POOL: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
}


def _is_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite")


def _sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def create_db_engine(db_url: str, **overrides: Any) -> Engine:
    """Build an engine for ``db_url``; ``overrides`` win over the defaults."""
    if _is_sqlite(db_url):
        # Sync handlers run on a thread pool, so the connection crosses threads
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    else:
        options = dict(POSTGRES_POOL)
    options.update(overrides)

    new_engine = create_engine(db_url, **options)
    if _is_sqlite(db_url):
        event.listen(new_engine, "connect", _sqlite_foreign_keys)
    logger.debug("Engine created for %s", new_engine.url.render_as_string(hide_password=True))
    return new_engine


def describe_pool(target: Engine | None = None) -> dict[str, Any]:
    """Pool class and its status line, for the health endpoint."""
    pool = (target or engine).pool
    status = getattr(pool, "status", None)
    return {"pool": type(pool).__name__, "status": status() if callable(status) else ""}


engine: Engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


__all__ = [
    "Base",
    "SessionLocal",
    "create_db_engine",
    "describe_pool",
    "engine",
]
