"""Store contracts bound to a live SQLAlchemy connection.

Each store wraps the ``Connection`` of the caller's transaction, so
several store calls made inside one ``Network.transaction()`` commit or
roll back together.
"""

from profnet.infrastructure.repositories.connections import ConnectionStore
from profnet.infrastructure.repositories.messages import MessageStore
from profnet.infrastructure.repositories.users import UserDirectory

__all__ = ["ConnectionStore", "MessageStore", "UserDirectory"]
