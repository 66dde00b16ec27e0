"""Shared pytest fixtures and test helpers for profnet tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine

from profnet.app import App
from profnet.config.settings import ProfnetSettings
from profnet.domain.lifecycle import ConnectionStatus
from profnet.infrastructure.database.engine import init_database
from profnet.infrastructure.network import Network
from profnet.services._helpers import now_iso
from profnet.services.connections import ConnectionService
from profnet.services.messages import MessagingService


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host PROFNET_* variables from leaking into settings."""
    import os

    for key in list(os.environ):
        if key.startswith("PROFNET_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "test.db")
    try:
        yield engine
    finally:
        engine.dispose()


def make_network(tmp_path: Path, **overrides: Any) -> Network:
    """Network on a temp data root with optional settings overrides."""
    settings = ProfnetSettings.load(data_root=tmp_path, **overrides)
    return Network(settings)


@pytest.fixture
def network(tmp_path: Path) -> Iterator[Network]:
    """Fully initialized network on a temp directory with default policy."""
    net = make_network(tmp_path)
    try:
        yield net
    finally:
        net.close()


@pytest.fixture
def app(tmp_path: Path) -> Iterator[App]:
    """App over a temp data root, logging left untouched."""
    with App(ProfnetSettings.load(data_root=tmp_path), setup_logging=False) as instance:
        yield instance


@pytest.fixture
def connections(network: Network) -> ConnectionService:
    return ConnectionService(network)


@pytest.fixture
def messaging(network: Network) -> MessagingService:
    return MessagingService(network)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def add_users(network: Network, *user_ids: str) -> None:
    """Register users directly in the directory."""
    with network.transaction() as txn:
        for uid in user_ids:
            txn.users.add(uid, uid.title(), now_iso())


def befriend(network: Network, a: str, b: str) -> None:
    """Insert an accepted pair directly, bypassing the request workflow."""
    with network.transaction() as txn:
        txn.connections.put_edge_pair(
            a, b, ConnectionStatus.ACCEPTED, requested_by=a, now=now_iso()
        )


def build_chain(network: Network, ids: list[str]) -> None:
    """Create users and a friendship chain: A - B - C - D."""
    add_users(network, *ids)
    for left, right in zip(ids, ids[1:], strict=False):
        befriend(network, left, right)


def build_star(network: Network, center: str, spokes: list[str]) -> None:
    """Create users and a star: center befriends every spoke."""
    add_users(network, center, *spokes)
    for spoke in spokes:
        befriend(network, center, spoke)
