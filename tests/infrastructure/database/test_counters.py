"""Tests for atomic sequential message ID generation."""

import pytest
from sqlalchemy.engine import Engine

from profnet.infrastructure.database.counters import next_sequential_id


class TestNextSequentialId:
    def test_first_message_id(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            assert next_sequential_id(conn, "MSG-") == "MSG-0001"

    def test_sequential_increment(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            ids = [next_sequential_id(conn, "MSG-") for _ in range(3)]
        assert ids == ["MSG-0001", "MSG-0002", "MSG-0003"]

    def test_rolled_back_claim_is_reused(self, db_engine: Engine) -> None:
        """The claim is part of the caller's transaction."""

        class _Abort(Exception):
            pass

        with pytest.raises(_Abort):
            with db_engine.begin() as conn:
                next_sequential_id(conn, "MSG-")
                raise _Abort
        with db_engine.begin() as conn:
            assert next_sequential_id(conn, "MSG-") == "MSG-0001"

    def test_invalid_prefix_raises(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            with pytest.raises(ValueError, match="Unknown sequential type prefix"):
                next_sequential_id(conn, "LOG-")
