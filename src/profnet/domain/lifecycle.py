"""Connection and message lifecycle models.

Connection status is tracked per unordered user pair:
``no edge -> pending -> accepted | rejected``. Removing a friendship
deletes the pair, so ``accepted`` has no outgoing status transition.

Message status only moves forward: ``delivered -> read``. Deletion is
viewer-scoped and lives outside the status column.
"""

from __future__ import annotations

from enum import StrEnum


class ConnectionStatus(StrEnum):
    """Status of a friendship or friend request between two users."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class MessageStatus(StrEnum):
    """Delivery status of a message, as seen by its receiver."""

    DELIVERED = "delivered"
    READ = "read"


# --- Transition maps ---

CONNECTION_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["accepted", "rejected"],
    "accepted": [],
    "rejected": ["pending"],  # re-request, subject to policy
}

MESSAGE_TRANSITIONS: dict[str, list[str]] = {
    "delivered": ["read"],
    "read": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]],
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed
