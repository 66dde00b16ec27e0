"""Database engine setup for SQLite with WAL mode.

WAL mode lets readers proceed while a writer holds the lock; the busy
timeout bounds how long a writer waits before the store reports itself
unavailable. The DB is stored at {data_root}/.profnet/{filename}.

SQLAlchemy Core (not ORM) is used: every engine operation is a short
request/response unit with no need for identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine

from profnet.domain.ids import MESSAGE_PREFIX
from profnet.infrastructure.database.schema import id_counters, metadata


def create_db_engine(db_path: Path, *, busy_timeout: float = 5.0) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": busy_timeout, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path, *, busy_timeout: float = 5.0) -> Engine:
    """Initialize the profnet database at *db_path*.

    Creates the parent directory, all tables from :data:`schema.metadata`,
    and seeds the ``id_counters`` table.

    Idempotent — safe to call on an existing database.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path, busy_timeout=busy_timeout)

    metadata.create_all(engine)
    _seed_counters(engine)
    return engine


def _seed_counters(engine: Engine) -> None:
    """Insert the initial message counter row if it doesn't exist."""
    with engine.begin() as conn:
        row = conn.execute(
            select(id_counters.c.type_prefix).where(id_counters.c.type_prefix == MESSAGE_PREFIX)
        ).first()
        if row is None:
            conn.execute(insert(id_counters).values(type_prefix=MESSAGE_PREFIX, next_value=1))
