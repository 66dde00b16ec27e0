"""App — the entry point an embedding API or worker process holds on to.

Created once per process from :class:`ProfnetSettings`. It configures
logging, lazily opens the :class:`Network`, and hands out the services.
Request context (the acting user) is passed into every service call, so
no per-user state lives here.
"""

from __future__ import annotations

import threading
from functools import cached_property
from typing import TYPE_CHECKING, Any

from profnet.config.logging import configure_logging
from profnet.config.settings import ProfnetSettings

if TYPE_CHECKING:
    from types import TracebackType

    from profnet.infrastructure.network import Network
    from profnet.services.connections import ConnectionService
    from profnet.services.messages import MessagingService
    from profnet.services.users import UserService


class App:
    """Shared context for every caller of the engines.

    The network is initialized on first use, so constructing an App never
    touches the database.
    """

    def __init__(
        self,
        settings: ProfnetSettings | None = None,
        *,
        setup_logging: bool = True,
    ) -> None:
        self.settings = settings or ProfnetSettings.load()
        self._network: Network | None = None
        self._lock = threading.Lock()
        if setup_logging:
            configure_logging(verbose=self.settings.verbose, log_json=self.settings.log_json)

    @classmethod
    def from_config(cls, **kwargs: Any) -> App:
        """Build settings via :meth:`ProfnetSettings.load` and wrap them."""
        return cls(ProfnetSettings.load(**kwargs))

    @property
    def network(self) -> Network:
        """The network instance (created lazily on first access)."""
        with self._lock:
            if self._network is None:
                from profnet.infrastructure.network import Network

                self._network = Network(self.settings)
            return self._network

    @cached_property
    def users(self) -> UserService:
        from profnet.services.users import UserService

        return UserService(self.network)

    @cached_property
    def connections(self) -> ConnectionService:
        from profnet.services.connections import ConnectionService

        return ConnectionService(self.network)

    @cached_property
    def messages(self) -> MessagingService:
        from profnet.services.messages import MessagingService

        return MessagingService(self.network)

    def close(self) -> None:
        if self._network is not None:
            self._network.close()

    def __enter__(self) -> App:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
