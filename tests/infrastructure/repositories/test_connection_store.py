"""Tests for ConnectionStore — single-row pairs projected per owner."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from profnet.domain.lifecycle import ConnectionStatus
from profnet.infrastructure.database.schema import connections
from profnet.infrastructure.network import Network
from tests.conftest import add_users, befriend

NOW = "2025-01-01T00:00:00.000000Z"


@pytest.fixture
def people(network: Network) -> Network:
    add_users(network, "alice", "bob", "carol", "dave")
    return network


class TestGetEdge:
    def test_missing(self, people: Network) -> None:
        with people.reader() as txn:
            assert txn.connections.get_edge("alice", "bob") is None

    def test_mirror_views_agree(self, people: Network) -> None:
        with people.transaction() as txn:
            txn.connections.put_edge_pair(
                "bob", "alice", ConnectionStatus.PENDING, requested_by="bob", now=NOW
            )
        with people.reader() as txn:
            ab = txn.connections.get_edge("alice", "bob")
            ba = txn.connections.get_edge("bob", "alice")
        assert ab is not None and ba is not None
        assert ab.status == ba.status == ConnectionStatus.PENDING
        assert (ab.owner_id, ab.peer_id) == ("alice", "bob")
        assert (ba.owner_id, ba.peer_id) == ("bob", "alice")
        assert ab.incoming and not ba.incoming

    def test_pair_stored_once(self, people: Network) -> None:
        befriend(people, "alice", "bob")
        with people.reader() as txn:
            count = txn.conn.execute(select(func.count()).select_from(connections)).scalar_one()
        assert count == 1


class TestPutEdgePair:
    def test_duplicate_pair_raises(self, people: Network) -> None:
        befriend(people, "alice", "bob")
        with pytest.raises(IntegrityError):
            with people.transaction() as txn:
                txn.connections.put_edge_pair(
                    "bob", "alice", ConnectionStatus.PENDING, requested_by="bob", now=NOW
                )


class TestUpdateStatus:
    def test_compare_and_swap(self, people: Network) -> None:
        with people.transaction() as txn:
            txn.connections.put_edge_pair(
                "alice", "bob", ConnectionStatus.PENDING, requested_by="alice", now=NOW
            )
            assert txn.connections.update_status(
                "bob",
                "alice",
                ConnectionStatus.ACCEPTED,
                expected=ConnectionStatus.PENDING,
                now=NOW,
            )
            # Second swap sees ACCEPTED, not PENDING.
            assert not txn.connections.update_status(
                "bob",
                "alice",
                ConnectionStatus.REJECTED,
                expected=ConnectionStatus.PENDING,
                now=NOW,
            )

    def test_match_requester(self, people: Network) -> None:
        with people.transaction() as txn:
            txn.connections.put_edge_pair(
                "alice", "bob", ConnectionStatus.PENDING, requested_by="alice", now=NOW
            )
            assert not txn.connections.update_status(
                "alice",
                "bob",
                ConnectionStatus.ACCEPTED,
                expected=ConnectionStatus.PENDING,
                match_requester="bob",
                now=NOW,
            )

    def test_rewrites_requester(self, people: Network) -> None:
        with people.transaction() as txn:
            txn.connections.put_edge_pair(
                "alice", "bob", ConnectionStatus.REJECTED, requested_by="alice", now=NOW
            )
            txn.connections.update_status(
                "bob",
                "alice",
                ConnectionStatus.PENDING,
                expected=ConnectionStatus.REJECTED,
                requested_by="bob",
                now=NOW,
            )
            edge = txn.connections.get_edge("alice", "bob")
        assert edge is not None
        assert edge.requested_by == "bob"
        assert edge.status == ConnectionStatus.PENDING


class TestDeleteEdgePair:
    def test_delete_with_status_filter(self, people: Network) -> None:
        befriend(people, "alice", "bob")
        with people.transaction() as txn:
            assert not txn.connections.delete_edge_pair(
                "alice", "bob", status=ConnectionStatus.PENDING
            )
            assert txn.connections.delete_edge_pair(
                "bob", "alice", status=ConnectionStatus.ACCEPTED
            )
            assert txn.connections.get_edge("alice", "bob") is None
            assert txn.connections.get_edge("bob", "alice") is None


class TestListings:
    def test_list_edges_by_owner_sorted(self, people: Network) -> None:
        befriend(people, "carol", "dave")
        befriend(people, "carol", "alice")
        with people.transaction() as txn:
            txn.connections.put_edge_pair(
                "bob", "carol", ConnectionStatus.PENDING, requested_by="bob", now=NOW
            )
        with people.reader() as txn:
            everything = txn.connections.list_edges_by_owner("carol")
            accepted = txn.connections.list_edges_by_owner("carol", ConnectionStatus.ACCEPTED)
        assert [e.peer_id for e in everything] == ["alice", "bob", "dave"]
        assert [e.peer_id for e in accepted] == ["alice", "dave"]
        assert all(e.owner_id == "carol" for e in everything)

    def test_count_accepted(self, people: Network) -> None:
        befriend(people, "alice", "bob")
        befriend(people, "carol", "alice")
        with people.transaction() as txn:
            txn.connections.put_edge_pair(
                "alice", "dave", ConnectionStatus.PENDING, requested_by="alice", now=NOW
            )
        with people.reader() as txn:
            assert txn.connections.count_accepted("alice") == 2
            assert txn.connections.count_accepted("dave") == 0
