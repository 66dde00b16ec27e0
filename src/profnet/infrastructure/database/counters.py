"""Atomic sequential ID generation for messages.

Uses the ``id_counters`` table inside the caller's transaction so that
no two messages share an ID and a purged message never frees its ID.
Minimum 4 digits, grows naturally past 9999.

The caller owns the transaction — pass a ``Connection`` obtained from
``engine.begin()`` so the counter increment participates in the same
atomic transaction as the surrounding writes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from profnet.domain.ids import MESSAGE_PREFIX
from profnet.infrastructure.database.schema import id_counters

if TYPE_CHECKING:
    from sqlalchemy import Connection

_VALID_PREFIXES = frozenset({MESSAGE_PREFIX})


def next_sequential_id(conn: Connection, type_prefix: str) -> str:
    """Claim the next sequential ID for *type_prefix*.

    Args:
        conn: Active SQLAlchemy connection (caller owns the transaction).
        type_prefix: Currently only ``"MSG-"``.

    Returns:
        The new ID string (e.g. ``"MSG-0042"``).

    Raises:
        ValueError: If *type_prefix* is not a recognized sequential type.
    """
    if type_prefix not in _VALID_PREFIXES:
        msg = (
            f"Unknown sequential type prefix: {type_prefix!r}. "
            f"Expected one of {sorted(_VALID_PREFIXES)}"
        )
        raise ValueError(msg)

    # Bump first so the write lock is taken before the value is read.
    conn.execute(
        update(id_counters)
        .where(id_counters.c.type_prefix == type_prefix)
        .values(next_value=id_counters.c.next_value + 1)
    )
    row = conn.execute(
        select(id_counters.c.next_value).where(id_counters.c.type_prefix == type_prefix)
    ).one()

    claimed: int = row.next_value - 1
    return f"{type_prefix}{claimed:04d}"
