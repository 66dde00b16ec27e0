"""MessagingService — send, list, read, and retire messages.

Lifecycle: a message is created ``delivered``, becomes ``read`` the
first time its receiver opens it, and is hidden per viewer on delete.
The row is purged once every party has deleted it.

Messaging any registered user is allowed by default, friend or not.
Setting ``messaging.require_connection`` restricts sending to accepted
friends.
"""

from __future__ import annotations

import logging

from profnet.domain.errors import MsgErr
from profnet.domain.ids import validate_message_id
from profnet.domain.lifecycle import (
    MESSAGE_TRANSITIONS,
    ConnectionStatus,
    MessageStatus,
    is_valid_transition,
)
from profnet.domain.models import Message
from profnet.services._helpers import next_timestamp, now_iso
from profnet.services.base import BaseService, store_guarded
from profnet.services.result import ServiceResult

logger = logging.getLogger(__name__)


class MessagingService(BaseService):
    """Handles direct messages between users."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _listing(op: str, user_id: str, rows: list[Message]) -> ServiceResult:
        items = [m.to_dict() for m in rows]
        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user_id, "count": len(items), "items": items},
        )

    def _not_found(self, op: str, message_id: str) -> ServiceResult:
        return self._failure(op, MsgErr.NOT_FOUND, f"Message '{message_id}' not found")

    # ------------------------------------------------------------------
    # send
    # ------------------------------------------------------------------

    @store_guarded
    def send_message(self, sender: str, receiver: str, content: str) -> ServiceResult:
        """Deliver *content* from *sender* to *receiver*.

        ``sent_at`` is strictly increasing per sender, so two sends from
        the same user never tie in an inbox or outbox ordering.
        """
        op = "send_message"
        body = content.strip()
        if not body:
            return self._failure(op, MsgErr.EMPTY_CONTENT, "Message content is empty")
        limit = self.settings.messaging.max_content_length
        if len(body) > limit:
            return self._failure(
                op,
                MsgErr.CONTENT_TOO_LONG,
                f"Message content exceeds {limit} characters",
                length=len(body),
                limit=limit,
            )

        with self._network.transaction() as txn:
            missing = txn.users.missing([sender, receiver])
            if missing:
                return self._failure(
                    op,
                    MsgErr.NOT_FOUND,
                    f"Unknown user(s): {', '.join(missing)}",
                    missing=missing,
                )

            if self.settings.messaging.require_connection and sender != receiver:
                edge = txn.connections.get_edge(sender, receiver)
                if edge is None or edge.status != ConnectionStatus.ACCEPTED:
                    return self._failure(
                        op,
                        MsgErr.NOT_CONNECTED,
                        f"'{sender}' can only message friends",
                    )

            sent_at = next_timestamp(txn.messages.last_sent_at(sender))
            message_id = txn.messages.insert(sender, receiver, body, sent_at)

        logger.debug("Message %s delivered %s -> %s", message_id, sender, receiver)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": message_id,
                "sender_id": sender,
                "receiver_id": receiver,
                "sent_at": sent_at,
                "status": str(MessageStatus.DELIVERED),
            },
        )

    # ------------------------------------------------------------------
    # listings
    # ------------------------------------------------------------------

    @store_guarded
    def list_inbox(self, user_id: str) -> ServiceResult:
        """Messages received by *user_id*, newest first, minus own deletes."""
        with self._network.reader() as txn:
            rows = txn.messages.list_by_receiver(user_id)
        return self._listing("list_inbox", user_id, rows)

    @store_guarded
    def list_unread(self, user_id: str) -> ServiceResult:
        """Inbox messages still in ``delivered`` status."""
        with self._network.reader() as txn:
            rows = txn.messages.list_by_receiver(user_id, status=MessageStatus.DELIVERED)
        return self._listing("list_unread", user_id, rows)

    @store_guarded
    def list_sent(self, user_id: str) -> ServiceResult:
        """Messages sent by *user_id*, newest first, minus own deletes."""
        with self._network.reader() as txn:
            rows = txn.messages.list_by_sender(user_id)
        return self._listing("list_sent", user_id, rows)

    # ------------------------------------------------------------------
    # read / delete
    # ------------------------------------------------------------------

    @store_guarded
    def read_message(self, user_id: str, message_id: str) -> ServiceResult:
        """Open a message as its receiver and return the content.

        Marks the message ``read`` on first open; later opens leave it
        ``read``. A message the receiver already deleted is not found.
        """
        op = "read_message"
        if not validate_message_id(message_id):
            return self._not_found(op, message_id)
        with self._network.transaction() as txn:
            message = txn.messages.get(message_id)
            if message is None:
                return self._not_found(op, message_id)
            if message.receiver_id != user_id:
                return self._failure(
                    op,
                    MsgErr.FORBIDDEN,
                    f"Only the receiver can read message '{message_id}'",
                )
            if user_id in message.deleted_by:
                return self._not_found(op, message_id)

            if is_valid_transition(message.status, MessageStatus.READ, MESSAGE_TRANSITIONS):
                txn.messages.update_status(
                    message_id, MessageStatus.READ, expected=MessageStatus.DELIVERED
                )
                logger.debug("Message %s read by %s", message_id, user_id)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": message_id,
                "sender_id": message.sender_id,
                "content": message.content,
                "sent_at": message.sent_at,
                "status": str(MessageStatus.READ),
            },
        )

    @store_guarded
    def delete_message(self, user_id: str, message_id: str) -> ServiceResult:
        """Hide a message for *user_id* only.

        The other party keeps seeing it. Once both parties have deleted
        the message the row is purged.
        """
        op = "delete_message"
        if not validate_message_id(message_id):
            return self._not_found(op, message_id)
        with self._network.transaction() as txn:
            message = txn.messages.get(message_id)
            if message is None:
                return self._not_found(op, message_id)
            if not message.is_party(user_id):
                return self._failure(
                    op,
                    MsgErr.FORBIDDEN,
                    f"'{user_id}' is neither sender nor receiver of '{message_id}'",
                )
            if user_id in message.deleted_by:
                return self._not_found(op, message_id)

            txn.messages.mark_deleted_for_viewer(message_id, user_id, now_iso())
            parties = {message.sender_id, message.receiver_id}
            purged = parties <= txn.messages.deleted_by(message_id)
            if purged:
                txn.messages.purge(message_id)

        logger.debug("Message %s deleted for %s (purged=%s)", message_id, user_id, purged)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": message_id, "user_id": user_id, "purged": purged},
        )
