"""UserService — the user directory the engines resolve identities against.

Profiles and credentials live elsewhere; this service only registers
opaque user IDs with a display name and answers existence and name
search queries.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from profnet.domain.errors import UserErr
from profnet.domain.ids import validate_user_id
from profnet.services._helpers import now_iso
from profnet.services.base import BaseService, store_guarded
from profnet.services.result import ServiceResult

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """Registers users and resolves them by ID or name."""

    @store_guarded
    def register(self, user_id: str, name: str | None = None) -> ServiceResult:
        """Add *user_id* to the directory. *name* defaults to the ID."""
        op = "register"
        if not validate_user_id(user_id):
            return self._failure(op, UserErr.INVALID_ID, f"Invalid user id: {user_id!r}")

        display = (name or user_id).strip() or user_id
        try:
            with self._network.transaction() as txn:
                if txn.users.exists(user_id):
                    return self._failure(
                        op, UserErr.ALREADY_EXISTS, f"User '{user_id}' already exists"
                    )
                txn.users.add(user_id, display, now_iso())
        except IntegrityError:
            return self._failure(op, UserErr.ALREADY_EXISTS, f"User '{user_id}' already exists")

        logger.debug("Registered user %s", user_id)
        return ServiceResult(ok=True, op=op, data={"id": user_id, "name": display})

    def exists(self, user_id: str) -> bool:
        with self._network.reader() as txn:
            return txn.users.exists(user_id)

    @store_guarded
    def get(self, user_id: str) -> ServiceResult:
        with self._network.reader() as txn:
            user = txn.users.get(user_id)
        if user is None:
            return self._failure("get", UserErr.NOT_FOUND, f"User '{user_id}' not found")
        return ServiceResult(ok=True, op="get", data=user)

    @store_guarded
    def search(self, name_fragment: str, *, limit: int = 50) -> ServiceResult:
        """Find users whose display name contains *name_fragment*."""
        fragment = name_fragment.strip()
        if not fragment:
            return ServiceResult(ok=True, op="search", data={"count": 0, "items": []})
        with self._network.reader() as txn:
            items = txn.users.search(fragment, limit=max(1, limit))
        return ServiceResult(
            ok=True,
            op="search",
            data={"query": fragment, "count": len(items), "items": items},
        )
