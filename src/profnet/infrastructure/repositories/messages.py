"""MessageStore — message rows plus viewer-scoped deletes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from profnet.domain.ids import MESSAGE_PREFIX
from profnet.domain.lifecycle import MessageStatus
from profnet.domain.models import Message
from profnet.infrastructure.database.counters import next_sequential_id
from profnet.infrastructure.database.schema import message_deletions, messages, sender_clocks

if TYPE_CHECKING:
    from sqlalchemy import Connection, Select


class MessageStore:
    """Persistent set of message records."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, sender_id: str, receiver_id: str, content: str, sent_at: str) -> str:
        """Insert a delivered message and return its new ID."""
        message_id = next_sequential_id(self._conn, MESSAGE_PREFIX)
        self._conn.execute(
            insert(messages).values(
                id=message_id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                sent_at=sent_at,
                status=str(MessageStatus.DELIVERED),
            )
        )
        clock = sqlite_insert(sender_clocks).values(user_id=sender_id, last_sent_at=sent_at)
        self._conn.execute(
            clock.on_conflict_do_update(
                index_elements=[sender_clocks.c.user_id],
                set_={
                    "last_sent_at": func.max(
                        sender_clocks.c.last_sent_at, clock.excluded.last_sent_at
                    )
                },
            )
        )
        return message_id

    def update_status(
        self,
        message_id: str,
        status: MessageStatus,
        *,
        expected: MessageStatus,
    ) -> bool:
        """Compare-and-swap the message status. Returns True if applied."""
        result = self._conn.execute(
            update(messages)
            .where(messages.c.id == message_id, messages.c.status == str(expected))
            .values(status=str(status))
        )
        return result.rowcount == 1

    def mark_deleted_for_viewer(self, message_id: str, viewer: str, now: str) -> bool:
        """Hide the message for *viewer*. Returns False if already hidden."""
        existing = self._conn.execute(
            select(message_deletions.c.user_id).where(
                message_deletions.c.message_id == message_id,
                message_deletions.c.user_id == viewer,
            )
        ).first()
        if existing is not None:
            return False
        self._conn.execute(
            insert(message_deletions).values(message_id=message_id, user_id=viewer, deleted_at=now)
        )
        return True

    def purge(self, message_id: str) -> None:
        """Physically remove a message and its deletion markers."""
        self._conn.execute(
            delete(message_deletions).where(message_deletions.c.message_id == message_id)
        )
        self._conn.execute(delete(messages).where(messages.c.id == message_id))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, message_id: str) -> Message | None:
        row = self._conn.execute(select(messages).where(messages.c.id == message_id)).first()
        if row is None:
            return None
        return self._to_model(row, self.deleted_by(message_id))

    def deleted_by(self, message_id: str) -> frozenset[str]:
        rows = self._conn.execute(
            select(message_deletions.c.user_id).where(
                message_deletions.c.message_id == message_id
            )
        ).scalars()
        return frozenset(rows)

    def last_sent_at(self, sender_id: str) -> str | None:
        """Latest ``sent_at`` ever issued to *sender_id*, purged messages included."""
        return self._conn.execute(
            select(sender_clocks.c.last_sent_at).where(sender_clocks.c.user_id == sender_id)
        ).scalar_one_or_none()

    def list_by_receiver(
        self,
        receiver_id: str,
        *,
        status: MessageStatus | None = None,
    ) -> list[Message]:
        """Messages received by *receiver_id* and not deleted by them, newest first."""
        stmt = select(messages).where(messages.c.receiver_id == receiver_id)
        if status is not None:
            stmt = stmt.where(messages.c.status == str(status))
        return self._list_visible(stmt, viewer=receiver_id)

    def list_by_sender(self, sender_id: str) -> list[Message]:
        """Messages sent by *sender_id* and not deleted by them, newest first."""
        stmt = select(messages).where(messages.c.sender_id == sender_id)
        return self._list_visible(stmt, viewer=sender_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _list_visible(self, stmt: Select[Any], *, viewer: str) -> list[Message]:
        hidden = select(message_deletions.c.message_id).where(
            message_deletions.c.user_id == viewer
        )
        stmt = stmt.where(messages.c.id.not_in(hidden)).order_by(
            messages.c.sent_at.desc(), messages.c.id.desc()
        )
        rows = self._conn.execute(stmt).all()
        if not rows:
            return []

        deletions: dict[str, set[str]] = {}
        for mid, uid in self._conn.execute(
            select(message_deletions.c.message_id, message_deletions.c.user_id).where(
                message_deletions.c.message_id.in_([r.id for r in rows])
            )
        ):
            deletions.setdefault(mid, set()).add(uid)

        return [self._to_model(r, frozenset(deletions.get(r.id, ()))) for r in rows]

    @staticmethod
    def _to_model(row: Any, deleted_by: frozenset[str]) -> Message:
        return Message(
            id=row.id,
            sender_id=row.sender_id,
            receiver_id=row.receiver_id,
            content=row.content,
            sent_at=row.sent_at,
            status=MessageStatus(row.status),
            deleted_by=deleted_by,
        )
