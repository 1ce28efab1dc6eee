"""
Time conversion helpers shared by the storage layer and the shell.

Test start times travel as epoch nanoseconds in filters and as
DateTime64(3) values in ClickHouse.
"""

from __future__ import annotations

import calendar
from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def to_unix_nano(ts: datetime) -> int:
    """Epoch nanoseconds of ``ts``; naive datetimes are taken as UTC."""
    seconds = calendar.timegm(ts.utctimetuple())
    return seconds * 1_000_000_000 + ts.microsecond * 1000


def from_unix_nano(ns: int) -> datetime:
    """UTC datetime of epoch nanoseconds (truncated to microseconds)."""
    return _EPOCH + timedelta(microseconds=ns // 1000)


def format_datetime64(ts: datetime) -> str:
    """Render ``ts`` as a ClickHouse DateTime64(3) literal in UTC."""
    ts = ts.astimezone(UTC) if ts.tzinfo else ts
    return ts.strftime("%Y-%m-%d %H:%M:%S.") + f"{ts.microsecond // 1000:03d}"


def parse_datetime(value: str | datetime) -> datetime:
    """Parse a ClickHouse DateTime/DateTime64 value, returning an aware UTC datetime."""
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(value.replace(" ", "T"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts
