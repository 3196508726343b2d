# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (mocked AsyncSession)
- Integration tests (in-memory SQLite, FastAPI TestClient)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "test",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DATABASE_URL": "sqlite+aiosqlite://",
        "JWT_SECRET_KEY": "test-secret-key-for-testing-only",
        "JWT_ALGORITHM": "HS256",
        "ACCESS_TOKEN_EXPIRE_MINUTES": "30",
        "ACCESS_FREE_SUBJECT_LIMIT": "1",
        "ACCESS_FREE_COURSE_LIMIT": "1",
        "ACCESS_FREE_DOWNLOADS_PER_MONTH": "5",
    }


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (in-memory database)"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_user_id() -> str:
    """Provide a sample user ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def future_expiry() -> datetime:
    """An expiry date well in the future."""
    return datetime.now(timezone.utc) + timedelta(days=30)


@pytest.fixture
def past_expiry() -> datetime:
    """An expiry date in the past."""
    return datetime.now(timezone.utc) - timedelta(days=1)


@pytest.fixture
def make_profile(sample_user_id: str) -> Callable[..., MagicMock]:
    """Factory for mock profile rows.

    Example:
        profile = make_profile(grade=10, tier="high_school", expiry=future_expiry)
    """

    def _make(
        grade: int = 5,
        grade_level: str | None = None,
        tier: str | None = None,
        expiry: datetime | None = None,
        **overrides: Any,
    ) -> MagicMock:
        profile = MagicMock()
        profile.id = "profile-1"
        profile.user_id = sample_user_id
        profile.grade = grade
        profile.grade_level = grade_level if grade_level is not None else str(grade)
        profile.subscription_tier = tier
        profile.plan_expiry = expiry
        profile.role = "student"
        for key, value in overrides.items():
            setattr(profile, key, value)
        return profile

    return _make
