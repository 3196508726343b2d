# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for datetime utilities."""

from datetime import datetime, timedelta, timezone

from edugate.utils.datetime import ensure_utc, is_expired, month_start, utc_now


class TestEnsureUtc:
    """Tests for ensure_utc."""

    def test_naive_is_assumed_utc(self) -> None:
        """Test that naive datetimes get UTC tzinfo."""
        result = ensure_utc(datetime(2025, 3, 1, 12, 0))

        assert result == datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self) -> None:
        """Test that aware datetimes are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2025, 3, 1, 12, 0, tzinfo=plus_two))

        assert result == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc

    def test_none(self) -> None:
        """Test that None passes through."""
        assert ensure_utc(None) is None


class TestMonthStart:
    """Tests for month_start."""

    def test_first_instant_of_month(self) -> None:
        """Test truncation to day 1 at midnight UTC."""
        result = month_start(datetime(2025, 3, 17, 9, 30, 12, 500, tzinfo=timezone.utc))

        assert result == datetime(2025, 3, 1, tzinfo=timezone.utc)

    def test_uses_utc_calendar(self) -> None:
        """Test that the month is taken in UTC, not local time."""
        minus_five = timezone(timedelta(hours=-5))
        # 2025-03-31 22:00 at UTC-5 is already April in UTC
        result = month_start(datetime(2025, 3, 31, 22, 0, tzinfo=minus_five))

        assert result == datetime(2025, 4, 1, tzinfo=timezone.utc)

    def test_defaults_to_now(self) -> None:
        """Test that the current month is used by default."""
        now = utc_now()
        result = month_start()

        assert result.year == now.year
        assert result.month == now.month
        assert result.day == 1


class TestIsExpired:
    """Tests for is_expired."""

    def test_none_is_expired(self) -> None:
        """Test that a missing expiry counts as expired."""
        assert is_expired(None) is True

    def test_future_and_past(self) -> None:
        """Test both sides of the reference time."""
        now = datetime(2025, 5, 1, tzinfo=timezone.utc)

        assert is_expired(now + timedelta(seconds=1), now) is False
        assert is_expired(now - timedelta(seconds=1), now) is True
        assert is_expired(now, now) is True
