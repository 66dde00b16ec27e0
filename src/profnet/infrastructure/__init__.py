"""Infrastructure layer — database, store contracts, graph engine.

This layer depends on stdlib and third-party libs (SQLAlchemy, NetworkX).
It may import domain read models but never services or config loading.
"""
