"""NetworkX view of the accepted-friendship graph."""

from profnet.infrastructure.graph.engine import GraphEngine, load_graph

__all__ = ["GraphEngine", "load_graph"]
