"""Tests for connection and message lifecycle enums and transitions."""

from profnet.domain.lifecycle import (
    CONNECTION_TRANSITIONS,
    MESSAGE_TRANSITIONS,
    ConnectionStatus,
    MessageStatus,
    is_valid_transition,
)


class TestConnectionStatus:
    def test_members(self) -> None:
        assert {s.value for s in ConnectionStatus} == {"pending", "accepted", "rejected"}

    def test_transitions(self) -> None:
        assert is_valid_transition("pending", "accepted", CONNECTION_TRANSITIONS)
        assert is_valid_transition("pending", "rejected", CONNECTION_TRANSITIONS)
        assert is_valid_transition("rejected", "pending", CONNECTION_TRANSITIONS)
        assert not is_valid_transition("accepted", "pending", CONNECTION_TRANSITIONS)
        assert not is_valid_transition("pending", "pending", CONNECTION_TRANSITIONS)
        assert not is_valid_transition("accepted", "rejected", CONNECTION_TRANSITIONS)


class TestMessageStatus:
    def test_members(self) -> None:
        assert {s.value for s in MessageStatus} == {"delivered", "read"}

    def test_forward_only(self) -> None:
        assert is_valid_transition("delivered", "read", MESSAGE_TRANSITIONS)
        assert not is_valid_transition("read", "delivered", MESSAGE_TRANSITIONS)
        assert not is_valid_transition("read", "read", MESSAGE_TRANSITIONS)


class TestIsValidTransition:
    def test_unknown_status(self) -> None:
        assert not is_valid_transition("bogus", "read", MESSAGE_TRANSITIONS)
