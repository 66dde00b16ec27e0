"""Tests for service-layer timestamp helpers."""

from datetime import UTC, datetime

from profnet.services._helpers import format_ts, next_timestamp, now_iso, parse_ts


class TestTimestamps:
    def test_fixed_width(self) -> None:
        assert len(now_iso()) == len("2025-01-01T00:00:00.000000Z")

    def test_format_parse_inverse(self) -> None:
        moment = datetime(2025, 3, 4, 5, 6, 7, 89, tzinfo=UTC)
        assert parse_ts(format_ts(moment)) == moment

    def test_next_timestamp_without_history(self) -> None:
        assert next_timestamp(None) <= now_iso()

    def test_next_timestamp_strictly_after_last(self) -> None:
        last = now_iso()
        assert next_timestamp(last) > last

    def test_next_timestamp_bumps_future_last(self) -> None:
        assert next_timestamp("2999-12-31T23:59:59.999998Z") == "2999-12-31T23:59:59.999999Z"
