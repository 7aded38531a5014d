"""ISO 8601 datetime conversion utilities.

This module centralizes all transformations between Python datetime objects
and ISO 8601 strings. Card timestamps (created_at, updated_at, linked_at,
session expirations) should go through these functions to stay consistent.
"""

from datetime import datetime, timedelta, UTC


def to_timestamp(dt: datetime) -> str:
    """Convert datetime to ISO 8601 UTC timestamp string."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def to_datetime(timestamp: str) -> datetime:
    """Convert ISO 8601 UTC timestamp string to datetime."""
    dt = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def now() -> str:
    """Get current UTC timestamp as ISO 8601 string."""
    return to_timestamp(datetime.now(UTC))


def from_now(**delta) -> str:
    """Get a UTC timestamp offset from now, e.g. from_now(days=7)."""
    return to_timestamp(datetime.now(UTC) + timedelta(**delta))


def is_past(timestamp: str) -> bool:
    """Check whether an ISO 8601 timestamp lies in the past."""
    return to_datetime(timestamp) < datetime.now(UTC)
