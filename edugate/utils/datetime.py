# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for edugate.

This module provides standardized datetime operations to ensure consistency
across the entire codebase. All datetime operations should use these utilities.

Design Decisions:
-----------------
1. All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ)
2. All Python datetimes are timezone-aware (with timezone.utc)
3. Quota periods are calendar months in UTC

Usage:
------
    from edugate.utils.datetime import utc_now, month_start

    # For current time
    now = utc_now()

    # For the download quota period key
    period = month_start(now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    # Already aware - convert to UTC
    return dt.astimezone(timezone.utc)


def month_start(dt: datetime | None = None) -> datetime:
    """Get the first instant of the calendar month containing dt.

    Args:
        dt: Reference datetime. Defaults to now.

    Returns:
        Timezone-aware UTC datetime at day 1, 00:00:00.

    Example:
        >>> month_start(datetime(2025, 3, 17, 9, 30, tzinfo=timezone.utc))
        datetime.datetime(2025, 3, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    ref = ensure_utc(dt) if dt is not None else utc_now()
    return ref.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def is_expired(expiry: datetime | None, now: datetime | None = None) -> bool:
    """Check if a datetime has passed (is expired).

    Args:
        expiry: The expiry datetime to check.
        now: Reference time. Defaults to now.

    Returns:
        True if expired or expiry is None, False otherwise.
    """
    if expiry is None:
        return True

    reference = ensure_utc(now) if now is not None else utc_now()
    return not ensure_utc(expiry) > reference

