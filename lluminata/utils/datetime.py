# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for LLuminata Offline.

The sync queue stores creation times as integer epoch milliseconds so that
ordering and retention comparisons are plain integer comparisons inside
SQLite. Everything else in the package works with timezone-aware UTC
datetimes. These helpers convert between the two.

Usage:
------
    from lluminata.utils.datetime import epoch_millis, days_ago_millis

    # Timestamp for a new queue entry
    timestamp = epoch_millis()

    # Cutoff for the retention sweep
    cutoff = days_ago_millis(7)
"""

from datetime import datetime, timezone

MILLIS_PER_DAY = 24 * 60 * 60 * 1000


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def to_epoch_millis(dt: datetime) -> int:
    """Convert a datetime to integer milliseconds since the Unix epoch.

    Naive datetimes are assumed to be UTC.

    Args:
        dt: Datetime to convert.

    Returns:
        Milliseconds since 1970-01-01T00:00:00Z.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def from_epoch_millis(millis: int) -> datetime:
    """Create a timezone-aware UTC datetime from epoch milliseconds.

    Args:
        millis: Milliseconds since the Unix epoch.

    Returns:
        Timezone-aware UTC datetime.

    Example:
        >>> from_epoch_millis(0).isoformat()
        '1970-01-01T00:00:00+00:00'
    """
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def epoch_millis() -> int:
    """Get the current time as epoch milliseconds."""
    return to_epoch_millis(utc_now())


def days_ago_millis(days: int, now_millis: int | None = None) -> int:
    """Get the epoch-millisecond instant a number of days before now.

    Args:
        days: Number of days to go back.
        now_millis: Reference instant, defaults to the current time.

    Returns:
        Epoch milliseconds ``days`` days before the reference instant.
    """
    reference = epoch_millis() if now_millis is None else now_millis
    return reference - days * MILLIS_PER_DAY


def format_iso(dt: datetime | None) -> str | None:
    """Format datetime as ISO 8601 string in UTC.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None if dt is None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


__all__ = [
    "MILLIS_PER_DAY",
    "utc_now",
    "to_epoch_millis",
    "from_epoch_millis",
    "epoch_millis",
    "days_ago_millis",
    "format_iso",
]
