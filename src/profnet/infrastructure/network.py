"""Network — repository pattern with ACID transaction coordination.

The Network is the single dependency injected into every service. It
owns the database engine and the graph engine. :meth:`transaction`
hands out the store contracts bound to one DB transaction:

- **DB**: Native SQLAlchemy ``engine.begin()`` with auto-commit/rollback.
  Write transactions open with ``BEGIN IMMEDIATE``, so concurrent writers
  run one at a time and every read inside a write sees settled state.
- **Graph**: Cache is invalidated on transaction end (success or failure).
  The graph is lazy-rebuilt from DB on next access.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from profnet.infrastructure.database.engine import init_database
from profnet.infrastructure.graph.engine import GraphEngine, load_graph
from profnet.infrastructure.repositories import ConnectionStore, MessageStore, UserDirectory

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    import networkx as nx
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from profnet.config.settings import ProfnetSettings

logger = logging.getLogger(__name__)


@dataclass
class NetworkTransaction:
    """Active transaction context exposing the store contracts.

    Every store shares ``conn``, so all writes made through them commit
    or roll back together.
    """

    conn: Connection

    @cached_property
    def users(self) -> UserDirectory:
        return UserDirectory(self.conn)

    @cached_property
    def connections(self) -> ConnectionStore:
        return ConnectionStore(self.conn)

    @cached_property
    def messages(self) -> MessageStore:
        return MessageStore(self.conn)

    def graph_snapshot(self) -> nx.Graph:
        """Accepted-friendship graph as seen inside this transaction."""
        return load_graph(self.conn)


class Network:
    """Repository encapsulating database and graph access.

    Constructed once per process from :class:`ProfnetSettings` and shared
    by every service instance; safe to use from several threads.
    """

    def __init__(self, settings: ProfnetSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(
            settings.db_path,
            busy_timeout=settings.database.busy_timeout,
        )
        self._graph = GraphEngine(self._engine)
        logger.debug("Opened network database at %s", settings.db_path)

    @property
    def db_path(self) -> Path:
        return self._settings.db_path

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def graph(self) -> GraphEngine:
        """The graph engine (lazy-built from accepted connections)."""
        return self._graph

    @property
    def settings(self) -> ProfnetSettings:
        return self._settings

    @contextmanager
    def transaction(self) -> Iterator[NetworkTransaction]:
        """Atomic unit of work across all stores.

        **Warning:** ``network.graph`` reflects committed state only. Use
        :meth:`NetworkTransaction.graph_snapshot` for decisions that must
        agree with the writes of the same transaction.

        Usage::

            with network.transaction() as txn:
                txn.connections.put_edge_pair(a, b, status, requested_by=a, now=now)
                # Commits on success, rolls back on any exception.
        """
        try:
            with self._engine.begin() as conn:
                # Hold the write lock from the first statement on.
                conn.exec_driver_sql("BEGIN IMMEDIATE")
                yield NetworkTransaction(conn=conn)
        finally:
            self._graph.invalidate()

    @contextmanager
    def reader(self) -> Iterator[NetworkTransaction]:
        """Read-only unit of work; leaves the graph cache intact."""
        with self._engine.connect() as conn:
            yield NetworkTransaction(conn=conn)

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()
