"""SQLite database engine, schema, and ID counters via SQLAlchemy Core."""

from profnet.infrastructure.database.counters import next_sequential_id
from profnet.infrastructure.database.engine import create_db_engine, init_database
from profnet.infrastructure.database.schema import (
    connections,
    id_counters,
    message_deletions,
    messages,
    metadata,
    users,
)

__all__ = [
    "connections",
    "create_db_engine",
    "id_counters",
    "init_database",
    "message_deletions",
    "messages",
    "metadata",
    "next_sequential_id",
    "users",
]
