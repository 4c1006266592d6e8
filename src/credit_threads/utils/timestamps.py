"""Timestamp helpers for credit_threads.

Message and segment timestamps are timezone-aware UTC datetimes truncated
to whole milliseconds, which is the resolution MongoDB stores. Truncating
up front keeps a value read back from the database equal to the value
that was written.
"""

from datetime import UTC, datetime

__all__ = [
    "normalize_timestamp",
    "to_utc",
    "utcnow",
]


def to_utc(value: datetime) -> datetime:
    """Convert to aware UTC, keeping full precision.

    Naive datetimes are taken to already be in UTC. Used for read cursors,
    where rounding down would exclude messages strictly before the cursor.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def normalize_timestamp(value: datetime) -> datetime:
    """Convert to UTC and truncate to millisecond resolution."""
    value = to_utc(value)
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def utcnow() -> datetime:
    """Current time, normalized."""
    return normalize_timestamp(datetime.now(UTC))
