"""UserDirectory — the identity contract the engines consume."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select

from profnet.infrastructure.database.schema import users

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import Connection


class UserDirectory:
    """Resolves user existence and basic identity."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def exists(self, user_id: str) -> bool:
        row = self._conn.execute(select(users.c.id).where(users.c.id == user_id)).first()
        return row is not None

    def missing(self, user_ids: Iterable[str]) -> list[str]:
        """Return the subset of *user_ids* that are not registered, in order."""
        wanted = list(dict.fromkeys(user_ids))
        found = set(
            self._conn.execute(select(users.c.id).where(users.c.id.in_(wanted))).scalars()
        )
        return [uid for uid in wanted if uid not in found]

    def get(self, user_id: str) -> dict[str, Any] | None:
        row = self._conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
        return dict(row) if row is not None else None

    def add(self, user_id: str, name: str, created: str) -> None:
        self._conn.execute(insert(users).values(id=user_id, name=name, created=created))

    def search(self, fragment: str, *, limit: int = 50) -> list[dict[str, Any]]:
        """Case-insensitive substring match on display name.

        LIKE wildcards in *fragment* are escaped so the match is literal.
        """
        escaped = fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped.lower()}%"
        stmt = (
            select(users.c.id, users.c.name)
            .where(func.lower(users.c.name).like(pattern, escape="\\"))
            .order_by(users.c.name, users.c.id)
            .limit(limit)
        )
        return [dict(row) for row in self._conn.execute(stmt).mappings()]
