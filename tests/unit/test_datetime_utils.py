# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for datetime helpers."""

from datetime import datetime, timezone

from lluminata.utils.datetime import (
    MILLIS_PER_DAY,
    days_ago_millis,
    epoch_millis,
    format_iso,
    from_epoch_millis,
    to_epoch_millis,
)


class TestEpochMillis:
    """Tests for epoch-millisecond conversions."""

    def test_naive_datetime_treated_as_utc(self):
        """Test that naive datetimes convert as UTC."""
        naive = datetime(2025, 3, 1, 10, 0, 0)
        aware = datetime(2025, 3, 1, 10, 0, 0, tzinfo=timezone.utc)

        assert to_epoch_millis(naive) == to_epoch_millis(aware)

    def test_from_epoch_millis(self):
        """Test converting back to an aware datetime."""
        dt = from_epoch_millis(1_700_000_000_123)

        assert dt.tzinfo is timezone.utc
        assert to_epoch_millis(dt) == 1_700_000_000_123

    def test_epoch_millis_is_current(self):
        """Test that the clock reads the current time."""
        before = to_epoch_millis(datetime.now(timezone.utc))

        assert epoch_millis() >= before

    def test_days_ago_millis(self):
        """Test the retention cutoff arithmetic."""
        assert days_ago_millis(7, now_millis=10 * MILLIS_PER_DAY) == 3 * MILLIS_PER_DAY


class TestFormatIso:
    """Tests for ISO formatting."""

    def test_format_none(self):
        """Test that None passes through."""
        assert format_iso(None) is None

    def test_format_utc(self):
        """Test formatting an epoch instant."""
        assert format_iso(from_epoch_millis(0)) == "1970-01-01T00:00:00+00:00"
