"""
Tests for utils.time module - UTC timestamp utilities.

This module tests all time utility functions to ensure:
- All timestamps are timezone-aware (UTC)
- Formats are ISO 8601 with a 'Z' suffix
- Snapshot dates are UTC calendar dates
- Naive datetimes are rejected
- Deterministic behavior with time mocking (freezegun)
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from freezegun import freeze_time

from aeo_visibility.utils.time import (
    snapshot_date,
    utc_now,
    utc_timestamp,
)


class TestUtcNow:
    """Test utc_now() function."""

    def test_has_utc_timezone(self):
        result = utc_now()

        assert isinstance(result, datetime)
        assert result.tzinfo == UTC

    @freeze_time("2025-11-02 08:30:45")
    def test_frozen_time_returns_expected_datetime(self):
        assert utc_now() == datetime(2025, 11, 2, 8, 30, 45, tzinfo=UTC)


class TestUtcTimestamp:
    """Test utc_timestamp() function."""

    @freeze_time("2025-11-02 08:30:45.123456")
    def test_format_without_microseconds(self):
        assert utc_timestamp() == "2025-11-02T08:30:45Z"

    def test_ends_with_z(self):
        assert utc_timestamp().endswith("Z")


class TestSnapshotDate:
    """Test snapshot_date() function."""

    @freeze_time("2025-11-02 23:59:59")
    def test_defaults_to_today(self):
        assert snapshot_date() == "2025-11-02"

    def test_explicit_utc_datetime(self):
        assert snapshot_date(datetime(2025, 1, 31, 12, tzinfo=UTC)) == "2025-01-31"

    def test_converts_other_timezones_to_utc(self):
        """23:30 at UTC-2 is already the next day in UTC."""
        dt = datetime(2025, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-2)))

        assert snapshot_date(dt) == "2025-03-02"

    def test_naive_datetime_rejected(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            snapshot_date(datetime(2025, 1, 1))
