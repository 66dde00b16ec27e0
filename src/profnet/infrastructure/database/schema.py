"""SQLAlchemy Core table definitions for the profnet database.

A friendship or request between two users is stored as ONE row keyed by
the canonical pair ``(user_low, user_high)``. Per-owner views are
projected by the connection store, so the two directions of a pair can
never disagree.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("created", Text, nullable=False),
)

connections = Table(
    "connections",
    metadata,
    Column("user_low", Text, ForeignKey("users.id"), nullable=False),
    Column("user_high", Text, ForeignKey("users.id"), nullable=False),
    Column("requested_by", Text, ForeignKey("users.id"), nullable=False),
    Column("status", Text, nullable=False),  # pending | accepted | rejected
    Column("created", Text, nullable=False),
    Column("updated", Text, nullable=False),
    UniqueConstraint("user_low", "user_high", name="uq_connection_pair"),
    CheckConstraint("user_low < user_high", name="ck_connection_low_lt_high"),
    CheckConstraint(
        "requested_by = user_low OR requested_by = user_high",
        name="ck_connection_requester_in_pair",
    ),
)

messages = Table(
    "messages",
    metadata,
    Column("id", Text, primary_key=True),  # MSG-NNNN
    Column("sender_id", Text, ForeignKey("users.id"), nullable=False),
    Column("receiver_id", Text, ForeignKey("users.id"), nullable=False),
    Column("content", Text, nullable=False),
    Column("sent_at", Text, nullable=False),  # fixed-width UTC, sortable as text
    Column("status", Text, nullable=False),  # delivered | read
)

# Viewer-scoped deletes: one row per (message, viewer) that hid the message.
message_deletions = Table(
    "message_deletions",
    metadata,
    Column("message_id", Text, ForeignKey("messages.id"), nullable=False),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("deleted_at", Text, nullable=False),
    UniqueConstraint("message_id", "user_id"),
)

# Per-sender high-water mark for sent_at; survives message purges.
sender_clocks = Table(
    "sender_clocks",
    metadata,
    Column("user_id", Text, ForeignKey("users.id"), primary_key=True),
    Column("last_sent_at", Text, nullable=False),
)

id_counters = Table(
    "id_counters",
    metadata,
    Column("type_prefix", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_connections_low_status", connections.c.user_low, connections.c.status)
Index("ix_connections_high_status", connections.c.user_high, connections.c.status)
Index("ix_messages_receiver", messages.c.receiver_id, messages.c.sent_at)
Index("ix_messages_sender", messages.c.sender_id, messages.c.sent_at)
Index("ix_message_deletions_user", message_deletions.c.user_id)
