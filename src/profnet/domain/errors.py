"""Error codes carried in ``ServiceError.code``.

Expected domain conditions are reported through these codes rather than
raised. Only store faults outside the busy/timeout family propagate as
exceptions.
"""

from __future__ import annotations

from enum import StrEnum


class ConnErr(StrEnum):
    """Failure codes for connection graph operations."""

    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    ALREADY_PENDING = "ALREADY_PENDING"
    ALREADY_FRIENDS = "ALREADY_FRIENDS"
    NO_SUCH_REQUEST = "NO_SUCH_REQUEST"
    NOT_FRIENDS = "NOT_FRIENDS"
    HOP_LIMIT_EXCEEDED = "HOP_LIMIT_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    SELF_CONNECTION = "SELF_CONNECTION"
    REQUEST_BLOCKED = "REQUEST_BLOCKED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class MsgErr(StrEnum):
    """Failure codes for messaging operations."""

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    EMPTY_CONTENT = "EMPTY_CONTENT"
    CONTENT_TOO_LONG = "CONTENT_TOO_LONG"
    NOT_CONNECTED = "NOT_CONNECTED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class UserErr(StrEnum):
    """Failure codes for user directory operations."""

    INVALID_ID = "INVALID_ID"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    NOT_FOUND = "NOT_FOUND"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
