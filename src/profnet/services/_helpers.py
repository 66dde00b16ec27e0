"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

# Fixed width so stored timestamps sort correctly as text.
_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def now_iso() -> str:
    """Current UTC time as fixed-width ISO 8601 with microseconds."""
    return format_ts(datetime.now(UTC))


def format_ts(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime(_TS_FORMAT)


def parse_ts(value: str) -> datetime:
    return datetime.strptime(value, _TS_FORMAT).replace(tzinfo=UTC)


def next_timestamp(last: str | None) -> str:
    """Current time, nudged forward to stay strictly after *last*.

    Examples:
        >>> next_timestamp("2999-01-01T00:00:00.000000Z")
        '2999-01-01T00:00:00.000001Z'
    """
    now = datetime.now(UTC)
    if last is not None:
        floor = parse_ts(last) + timedelta(microseconds=1)
        if now < floor:
            now = floor
    return format_ts(now)
