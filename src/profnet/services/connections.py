"""ConnectionService — the friend graph engine.

Validates and mutates friendships, mediates the request workflow, runs
the eligibility check before a new request, and answers bounded
traversal queries over accepted friendships.

Pair state machine (see :mod:`profnet.domain.lifecycle`)::

    (no edge) -> pending -> accepted -> (no edge, via remove_friend)
                         -> rejected -> pending (re-request, if allowed)

Eligibility for a new request: the requester's accepted-degree is below
``graph.degree_threshold``, OR the requester is reachable from the
target within ``graph.reach_hops`` accepted edges. Well-connected users
need an introduction path; newcomers may reach out directly.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Any

import networkx as nx
from sqlalchemy.exc import IntegrityError

from profnet.domain.errors import ConnErr
from profnet.domain.lifecycle import (
    CONNECTION_TRANSITIONS,
    ConnectionStatus,
    is_valid_transition,
)
from profnet.services._helpers import now_iso
from profnet.services.base import BaseService, store_guarded
from profnet.services.result import ServiceResult

if TYPE_CHECKING:
    from profnet.config.models import GraphConfig
    from profnet.infrastructure.network import NetworkTransaction

logger = logging.getLogger(__name__)


class ConnectionService(BaseService):
    """Handles friend requests, friendships, and graph traversal."""

    @property
    def _policy(self) -> GraphConfig:
        return self.settings.graph

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _bfs_distance(g: nx.Graph, source: str, target: str, max_hops: int) -> int | None:
        """Hop count from *source* to *target*, or None beyond *max_hops*.

        Plain BFS that stops at the first hit, so a close target is found
        without expanding the rest of the radius.
        """
        if source == target:
            return 0
        if source not in g or target not in g:
            return None

        visited: set[str] = {source}
        queue: deque[tuple[str, int]] = deque([(source, 0)])
        while queue:
            node, depth = queue.popleft()
            if depth >= max_hops:
                continue
            for neighbor in g.neighbors(node):
                if neighbor == target:
                    return depth + 1
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append((neighbor, depth + 1))
        return None

    def _missing_users(self, *user_ids: str) -> list[str]:
        with self._network.reader() as txn:
            return txn.users.missing(user_ids)

    def _not_found(self, op: str, missing: list[str]) -> ServiceResult:
        return self._failure(
            op,
            ConnErr.NOT_FOUND,
            f"Unknown user(s): {', '.join(missing)}",
            missing=missing,
        )

    def _hop_limit_exceeded(self, op: str, requested: int) -> ServiceResult:
        limit = self._policy.max_traversal_hops
        return self._failure(
            op,
            ConnErr.HOP_LIMIT_EXCEEDED,
            f"Requested {requested} hops; the limit is {limit}",
            requested=requested,
            limit=limit,
        )

    def _eligibility(self, txn: NetworkTransaction, requester: str, target: str) -> dict[str, Any]:
        """Evaluate the eligibility rule against in-transaction state."""
        policy = self._policy
        degree = txn.connections.count_accepted(requester)
        verdict: dict[str, Any] = {
            "degree": degree,
            "degree_threshold": policy.degree_threshold,
            "reach_hops": policy.reach_hops,
            "eligible_by": None,
        }
        if degree < policy.degree_threshold:
            verdict["eligible_by"] = "degree"
            return verdict

        distance = self._bfs_distance(txn.graph_snapshot(), target, requester, policy.reach_hops)
        if distance is not None:
            verdict["eligible_by"] = "reachability"
            verdict["distance"] = distance
        return verdict

    # ------------------------------------------------------------------
    # Request workflow
    # ------------------------------------------------------------------

    @store_guarded
    def send_request(self, requester: str, target: str) -> ServiceResult:
        """Ask *target* to become *requester*'s friend.

        Creates the pending pair when the pair has no live edge and the
        requester passes the eligibility rule. A rejected pair may be
        re-requested while ``graph.allow_rerequest`` is enabled.
        """
        op = "send_request"
        if requester == target:
            return self._failure(op, ConnErr.SELF_CONNECTION, "Cannot send a request to yourself")

        try:
            with self._network.transaction() as txn:
                result = self._send_request_txn(txn, requester, target)
        except IntegrityError:
            # A concurrent request for the same pair committed first.
            return self._failure(
                op,
                ConnErr.ALREADY_PENDING,
                f"A request between '{requester}' and '{target}' is already pending",
            )

        if result.ok:
            logger.debug(
                "Friend request %s -> %s created (eligible by %s)",
                requester,
                target,
                result.data["eligible_by"],
            )
        return result

    def _send_request_txn(
        self,
        txn: NetworkTransaction,
        requester: str,
        target: str,
    ) -> ServiceResult:
        op = "send_request"
        missing = txn.users.missing([requester, target])
        if missing:
            return self._not_found(op, missing)

        edge = txn.connections.get_edge(requester, target)
        if edge is not None and not is_valid_transition(
            edge.status, ConnectionStatus.PENDING, CONNECTION_TRANSITIONS
        ):
            if edge.status == ConnectionStatus.ACCEPTED:
                return self._failure(
                    op,
                    ConnErr.ALREADY_FRIENDS,
                    f"'{requester}' and '{target}' are already friends",
                )
            return self._failure(
                op,
                ConnErr.ALREADY_PENDING,
                f"A request between '{requester}' and '{target}' is already pending",
                requested_by=edge.requested_by,
            )
        if edge is not None and not self._policy.allow_rerequest:
            return self._failure(
                op,
                ConnErr.REQUEST_BLOCKED,
                f"A previous request between '{requester}' and '{target}' was rejected",
            )

        verdict = self._eligibility(txn, requester, target)
        if verdict["eligible_by"] is None:
            return self._failure(
                op,
                ConnErr.NOT_ELIGIBLE,
                (
                    f"'{requester}' has {verdict['degree']} friends and no path of "
                    f"{verdict['reach_hops']} hops or fewer to '{target}'"
                ),
                **verdict,
            )

        now = now_iso()
        if edge is None:
            txn.connections.put_edge_pair(
                requester,
                target,
                ConnectionStatus.PENDING,
                requested_by=requester,
                now=now,
            )
        elif not txn.connections.update_status(
            requester,
            target,
            ConnectionStatus.PENDING,
            expected=ConnectionStatus.REJECTED,
            requested_by=requester,
            now=now,
        ):
            return self._failure(
                op,
                ConnErr.ALREADY_PENDING,
                f"A request between '{requester}' and '{target}' is already pending",
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "requester": requester,
                "target": target,
                "status": str(ConnectionStatus.PENDING),
                "eligible_by": verdict["eligible_by"],
                "rerequest": edge is not None,
            },
        )

    @store_guarded
    def respond_to_request(
        self,
        responder: str,
        requester: str,
        *,
        accept: bool,
    ) -> ServiceResult:
        """Accept or reject the pending request *requester* sent to *responder*."""
        op = "respond_to_request"
        new_status = ConnectionStatus.ACCEPTED if accept else ConnectionStatus.REJECTED

        applied = False
        if responder != requester:
            with self._network.transaction() as txn:
                applied = txn.connections.update_status(
                    responder,
                    requester,
                    new_status,
                    expected=ConnectionStatus.PENDING,
                    match_requester=requester,
                    now=now_iso(),
                )

        if not applied:
            return self._failure(
                op,
                ConnErr.NO_SUCH_REQUEST,
                f"No pending request from '{requester}' to '{responder}'",
            )

        logger.debug("Friend request %s -> %s %s", requester, responder, new_status)
        return ServiceResult(
            ok=True,
            op=op,
            data={"responder": responder, "requester": requester, "status": str(new_status)},
        )

    def accept_request(self, responder: str, requester: str) -> ServiceResult:
        return self.respond_to_request(responder, requester, accept=True)

    def reject_request(self, responder: str, requester: str) -> ServiceResult:
        return self.respond_to_request(responder, requester, accept=False)

    @store_guarded
    def remove_friend(self, user_id: str, friend_id: str) -> ServiceResult:
        """Dissolve an accepted friendship. Both directions go at once."""
        op = "remove_friend"
        removed = False
        if user_id != friend_id:
            with self._network.transaction() as txn:
                removed = txn.connections.delete_edge_pair(
                    user_id, friend_id, status=ConnectionStatus.ACCEPTED
                )

        if not removed:
            return self._failure(
                op,
                ConnErr.NOT_FRIENDS,
                f"'{user_id}' and '{friend_id}' are not friends",
            )

        logger.debug("Friendship %s <-> %s removed", user_id, friend_id)
        return ServiceResult(ok=True, op=op, data={"user_id": user_id, "friend_id": friend_id})

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def _list_peers(
        self,
        op: str,
        user_id: str,
        status: ConnectionStatus,
        *,
        incoming: bool | None = None,
    ) -> ServiceResult:
        with self._network.reader() as txn:
            if not txn.users.exists(user_id):
                return self._not_found(op, [user_id])
            edges = txn.connections.list_edges_by_owner(user_id, status)

        peers = [e.peer_id for e in edges if incoming is None or e.incoming == incoming]
        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user_id, "count": len(peers), "items": peers},
        )

    @store_guarded
    def list_friends(self, user_id: str) -> ServiceResult:
        """Accepted peers of *user_id*, sorted by ID."""
        return self._list_peers("list_friends", user_id, ConnectionStatus.ACCEPTED)

    @store_guarded
    def list_pending_requests(self, user_id: str) -> ServiceResult:
        """Users whose pending request is waiting on *user_id*."""
        return self._list_peers(
            "list_pending_requests", user_id, ConnectionStatus.PENDING, incoming=True
        )

    @store_guarded
    def list_sent_requests(self, user_id: str) -> ServiceResult:
        """Users *user_id* has asked and who have not answered yet."""
        return self._list_peers(
            "list_sent_requests", user_id, ConnectionStatus.PENDING, incoming=False
        )

    @store_guarded
    def view_friends_of(self, viewer: str, friend: str) -> ServiceResult:
        """Browse a friend's friend list.

        Only available between friends. Each item notes whether the
        listed user is also a friend of *viewer*; *viewer* itself is
        left out.
        """
        op = "view_friends_of"
        with self._network.reader() as txn:
            missing = txn.users.missing([viewer, friend])
            if missing:
                return self._not_found(op, missing)
            edge = txn.connections.get_edge(viewer, friend)
            if edge is None or edge.status != ConnectionStatus.ACCEPTED:
                return self._failure(
                    op, ConnErr.NOT_FRIENDS, f"'{viewer}' and '{friend}' are not friends"
                )
            theirs = txn.connections.list_edges_by_owner(friend, ConnectionStatus.ACCEPTED)
            mine = {
                e.peer_id
                for e in txn.connections.list_edges_by_owner(viewer, ConnectionStatus.ACCEPTED)
            }

        items = [
            {"id": e.peer_id, "mutual": e.peer_id in mine} for e in theirs if e.peer_id != viewer
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"viewer": viewer, "friend": friend, "count": len(items), "items": items},
        )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    @store_guarded
    def traverse_friends_of_friends(
        self,
        user_id: str,
        hops: int = 2,
        *,
        include_intermediate: bool = False,
    ) -> ServiceResult:
        """Breadth-first walk over accepted friendships from *user_id*.

        Args:
            user_id: Start of the walk; never part of the result.
            hops: Walk radius. Values below 1 are treated as 1; values
                above ``graph.max_traversal_hops`` are refused.
            include_intermediate: When False only users exactly *hops*
                away are returned (``hops=2`` is the classic
                second-degree view without direct friends). When True
                every user within the radius is returned.
        """
        op = "traverse_friends_of_friends"
        if hops > self._policy.max_traversal_hops:
            return self._hop_limit_exceeded(op, hops)
        hops = max(1, hops)

        missing = self._missing_users(user_id)
        if missing:
            return self._not_found(op, missing)

        g = self._network.graph.graph
        lengths: dict[str, int] = {}
        if user_id in g:
            lengths = nx.single_source_shortest_path_length(g, user_id, cutoff=hops)

        items = sorted(
            (
                {"id": node, "depth": depth}
                for node, depth in lengths.items()
                if depth > 0 and (include_intermediate or depth == hops)
            ),
            key=lambda item: (item["depth"], item["id"]),
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "user_id": user_id,
                "hops": hops,
                "include_intermediate": include_intermediate,
                "count": len(items),
                "items": items,
            },
        )

    @store_guarded
    def reachable(self, source: str, target: str, max_hops: int | None = None) -> ServiceResult:
        """Check whether *target* is within *max_hops* accepted edges of *source*.

        *max_hops* defaults to ``graph.reach_hops``, the radius the
        eligibility rule uses.
        """
        op = "reachable"
        if max_hops is None:
            max_hops = self._policy.reach_hops
        if max_hops > self._policy.max_traversal_hops:
            return self._hop_limit_exceeded(op, max_hops)
        max_hops = max(0, max_hops)

        missing = self._missing_users(source, target)
        if missing:
            return self._not_found(op, missing)

        depth = self._bfs_distance(self._network.graph.graph, source, target, max_hops)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "source": source,
                "target": target,
                "max_hops": max_hops,
                "reachable": depth is not None,
                "depth": depth,
            },
        )

    @store_guarded
    def connection_depth(self, user_id: str, other_id: str) -> ServiceResult:
        """Shortest accepted-edge distance, capped at the traversal radius.

        ``depth`` is None when the two users are further apart than
        ``graph.max_traversal_hops`` or not connected at all.
        """
        op = "connection_depth"
        missing = self._missing_users(user_id, other_id)
        if missing:
            return self._not_found(op, missing)

        radius = self._policy.max_traversal_hops
        depth = self._bfs_distance(self._network.graph.graph, user_id, other_id, radius)
        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user_id, "other_id": other_id, "radius": radius, "depth": depth},
        )
