"""GraphEngine — lazy-built NetworkX graph of accepted friendships.

Only ``accepted`` pairs become edges; pending and rejected pairs never
affect reachability. The graph is undirected because a friendship is
symmetric.

The cached graph reflects committed state. ``Network.transaction()``
invalidates it when a write transaction ends, and code that must decide
inside a transaction builds a private snapshot with :func:`load_graph`.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import networkx as nx
from sqlalchemy import select

from profnet.domain.lifecycle import ConnectionStatus
from profnet.infrastructure.database.schema import connections

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

type _Graph = nx.Graph


def load_graph(conn: Connection) -> _Graph:
    """Build the accepted-friendship graph as seen by *conn*."""
    g: _Graph = nx.Graph()
    stmt = select(connections.c.user_low, connections.c.user_high).where(
        connections.c.status == str(ConnectionStatus.ACCEPTED)
    )
    for row in conn.execute(stmt):
        g.add_edge(row.user_low, row.user_high)
    return g


class GraphEngine:
    """Lazy-loading graph engine backed by the connections table."""

    def __init__(self, db: Engine) -> None:
        self._db = db
        self._graph: _Graph | None = None
        self._lock = threading.Lock()

    @property
    def graph(self) -> _Graph:
        """Return the graph, building from DB on first access."""
        with self._lock:
            if self._graph is None:
                with self._db.connect() as conn:
                    self._graph = load_graph(conn)
            return self._graph

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        with self._lock:
            self._graph = None
