"""ConnectionStore — pair edges stored once, projected per owner.

The stored row is keyed by the canonical pair ``(user_low, user_high)``.
``get_edge(a, b)`` and ``get_edge(b, a)`` read the same row, and every
write touches exactly that row, so a pair is always updated atomically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, func, insert, or_, select, update

from profnet.domain.ids import canonical_pair
from profnet.domain.lifecycle import ConnectionStatus
from profnet.domain.models import Connection
from profnet.infrastructure.database.schema import connections

if TYPE_CHECKING:
    from sqlalchemy import Connection as SqlConnection
    from sqlalchemy.sql.elements import ColumnElement


def _pair_clause(a: str, b: str) -> ColumnElement[bool]:
    low, high = canonical_pair(a, b)
    return and_(connections.c.user_low == low, connections.c.user_high == high)


def _owner_clause(owner: str) -> ColumnElement[bool]:
    return or_(connections.c.user_low == owner, connections.c.user_high == owner)


def _project(row: Any, owner: str) -> Connection:
    """Build the *owner*-side view of a stored pair row."""
    peer = row.user_high if row.user_low == owner else row.user_low
    return Connection(
        owner_id=owner,
        peer_id=peer,
        status=ConnectionStatus(row.status),
        requested_by=row.requested_by,
        created=row.created,
        updated=row.updated,
    )


class ConnectionStore:
    """Persistent set of pair edges with status."""

    def __init__(self, conn: SqlConnection) -> None:
        self._conn = conn

    def get_edge(self, owner: str, peer: str) -> Connection | None:
        row = self._conn.execute(select(connections).where(_pair_clause(owner, peer))).first()
        if row is None:
            return None
        return _project(row, owner)

    def put_edge_pair(
        self,
        a: str,
        b: str,
        status: ConnectionStatus,
        *,
        requested_by: str,
        now: str,
    ) -> None:
        """Insert a new pair row.

        Raises ``sqlalchemy.exc.IntegrityError`` if the pair already
        exists; callers treat that as a lost race.
        """
        low, high = canonical_pair(a, b)
        self._conn.execute(
            insert(connections).values(
                user_low=low,
                user_high=high,
                requested_by=requested_by,
                status=str(status),
                created=now,
                updated=now,
            )
        )

    def update_status(
        self,
        a: str,
        b: str,
        status: ConnectionStatus,
        *,
        expected: ConnectionStatus,
        now: str,
        requested_by: str | None = None,
        match_requester: str | None = None,
    ) -> bool:
        """Compare-and-swap the pair status.

        Only applies when the stored status equals *expected* (and, if
        given, the stored requester equals *match_requester*). Setting
        *requested_by* rewrites the requester, used by re-requests.

        Returns True if the row was updated.
        """
        stmt = update(connections).where(
            _pair_clause(a, b),
            connections.c.status == str(expected),
        )
        if match_requester is not None:
            stmt = stmt.where(connections.c.requested_by == match_requester)

        values: dict[str, Any] = {"status": str(status), "updated": now}
        if requested_by is not None:
            values["requested_by"] = requested_by
            values["created"] = now
        result = self._conn.execute(stmt.values(**values))
        return result.rowcount == 1

    def delete_edge_pair(
        self,
        a: str,
        b: str,
        *,
        status: ConnectionStatus | None = None,
    ) -> bool:
        """Delete the pair row, optionally only when in *status*.

        Returns True if a row was deleted.
        """
        stmt = delete(connections).where(_pair_clause(a, b))
        if status is not None:
            stmt = stmt.where(connections.c.status == str(status))
        result = self._conn.execute(stmt)
        return result.rowcount == 1

    def list_edges_by_owner(
        self,
        owner: str,
        status: ConnectionStatus | None = None,
    ) -> list[Connection]:
        """All edges touching *owner*, ordered by peer id."""
        stmt = select(connections).where(_owner_clause(owner))
        if status is not None:
            stmt = stmt.where(connections.c.status == str(status))
        edges = [_project(row, owner) for row in self._conn.execute(stmt)]
        return sorted(edges, key=lambda e: e.peer_id)

    def count_accepted(self, owner: str) -> int:
        """Accepted-degree of *owner*."""
        stmt = select(func.count()).where(
            _owner_clause(owner),
            connections.c.status == str(ConnectionStatus.ACCEPTED),
        )
        return int(self._conn.execute(stmt).scalar_one() or 0)
