"""Read models returned by the store contracts.

Both are frozen: the stores hand out snapshots, and every mutation goes
back through a store method inside a transaction.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from profnet.domain.lifecycle import ConnectionStatus, MessageStatus


class Connection(BaseModel):
    """One user's view of a pair edge.

    A pair is stored once; ``Connection(owner, peer)`` and
    ``Connection(peer, owner)`` are two projections of the same row and
    always agree on ``status``.
    """

    model_config = {"frozen": True}

    owner_id: str
    peer_id: str
    status: ConnectionStatus
    requested_by: str
    created: str
    updated: str

    @property
    def incoming(self) -> bool:
        """True when the peer sent the request to the owner."""
        return self.requested_by == self.peer_id


class Message(BaseModel):
    """A message row plus the set of viewers who deleted it."""

    model_config = {"frozen": True}

    id: str
    sender_id: str
    receiver_id: str
    content: str
    sent_at: str
    status: MessageStatus
    deleted_by: frozenset[str] = Field(default_factory=frozenset)

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def visible_to(self, user_id: str) -> bool:
        return self.is_party(user_id) and user_id not in self.deleted_by

    def to_dict(self) -> dict[str, str]:
        """Serialize for ``ServiceResult.data`` (viewer state omitted)."""
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "content": self.content,
            "sent_at": self.sent_at,
            "status": str(self.status),
        }
