"""ID patterns, validation, and pair ordering.

- User IDs are opaque handles chosen at registration: 1-64 characters of
  letters, digits, ``.``, ``_`` or ``-``.
- Message IDs are sequential (``MSG-0001``), claimed from an atomic DB
  counter.

INVARIANT: IDs are permanent. A purged message never frees its ID.
"""

from __future__ import annotations

import re

USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")
MESSAGE_ID_PATTERN = re.compile(r"^MSG-\d{4,}$")

MESSAGE_PREFIX = "MSG-"


def validate_user_id(user_id: str) -> bool:
    """Check whether *user_id* is a well-formed user handle."""
    return USER_ID_PATTERN.match(user_id) is not None


def validate_message_id(message_id: str) -> bool:
    """Check whether *message_id* matches the sequential message pattern."""
    return MESSAGE_ID_PATTERN.match(message_id) is not None


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    """Order an unordered user pair as ``(low, high)``.

    Examples:
        >>> canonical_pair("bob", "alice")
        ('alice', 'bob')
        >>> canonical_pair("alice", "bob")
        ('alice', 'bob')
    """
    return (a, b) if a < b else (b, a)
