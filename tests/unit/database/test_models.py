# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests table definitions, constraint names and helper methods.
"""

from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint

from edugate.infrastructure.database.models import (
    GRADE_LEVELS,
    Base,
    DownloadQuotaUsage,
    LessonAccessPermission,
    Profile,
    TimestampMixin,
    generate_uuid,
)


def _unique_constraints(model) -> dict[str, tuple[str, ...]]:
    return {
        constraint.name: tuple(column.name for column in constraint.columns)
        for constraint in model.__table__.constraints
        if isinstance(constraint, UniqueConstraint)
    }


class TestBase:
    """Test base model functionality."""

    def test_base_inherits_declarative_base(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin_has_created_at(self):
        """Verify TimestampMixin has created_at field."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")

    def test_all_tables_registered(self):
        """Verify importing the models registers every table."""
        assert set(Base.metadata.tables) == {
            "profiles",
            "lesson_access_permissions",
            "download_quota_usage",
        }

    def test_generate_uuid(self):
        """Verify generated ids are unique UUID strings."""
        first, second = generate_uuid(), generate_uuid()

        assert len(first) == 36
        assert first != second


class TestProfile:
    """Test the profile model."""

    def test_columns(self):
        """Verify the columns read by access control."""
        columns = Profile.__table__.columns

        assert Profile.__tablename__ == "profiles"
        assert columns["grade"].nullable is False
        assert columns["grade_level"].nullable is True
        assert columns["subscription_tier"].nullable is True
        assert columns["plan_expiry"].nullable is True

    def test_user_id_is_unique(self):
        """Verify one profile per user."""
        assert _unique_constraints(Profile)["uq_profiles_user_id"] == ("user_id",)

    def test_grade_levels(self):
        """Verify the accepted grade level values."""
        assert GRADE_LEVELS[0] == "1"
        assert "12" in GRADE_LEVELS
        assert GRADE_LEVELS[-2:] == ("college", "university")

    def test_repr_prefers_grade_level(self):
        """Test Profile.__repr__."""
        profile = Profile(user_id="u1", grade=13, grade_level="college")

        assert repr(profile) == "<Profile user=u1 grade=college>"


class TestLessonAccessPermission:
    """Test the lesson access permission model."""

    def test_table(self):
        """Verify table name and unique constraint."""
        assert LessonAccessPermission.__tablename__ == "lesson_access_permissions"
        assert _unique_constraints(LessonAccessPermission)["uniq_user_subject_lesson"] == (
            "user_id",
            "subject_id",
        )

    def test_indexes(self):
        """Verify lookup indexes."""
        names = {index.name for index in LessonAccessPermission.__table__.indexes}

        assert names == {
            "idx_lesson_access_user",
            "idx_lesson_access_subject",
            "idx_lesson_access_course",
        }

    def test_course_is_optional(self):
        """Verify school unlocks carry no course."""
        assert LessonAccessPermission.__table__.columns["course_id"].nullable is True
        assert LessonAccessPermission.__table__.columns["subject_id"].nullable is False

    def test_repr(self):
        """Test LessonAccessPermission.__repr__."""
        permission = LessonAccessPermission(user_id="u1", subject_id="math", lesson_id=3)

        assert repr(permission) == "<LessonAccessPermission user=u1 subject=math course=None>"


class TestDownloadQuotaUsage:
    """Test the download quota model."""

    def test_table(self):
        """Verify table name and unique constraint."""
        assert DownloadQuotaUsage.__tablename__ == "download_quota_usage"
        assert _unique_constraints(DownloadQuotaUsage)["uniq_user_period"] == (
            "user_id",
            "period_start",
        )

    def test_has_timestamps(self):
        """Verify the counter row tracks updates."""
        columns = DownloadQuotaUsage.__table__.columns

        assert "created_at" in columns
        assert "updated_at" in columns
        assert columns["last_download_at"].nullable is True

    def test_repr(self):
        """Test DownloadQuotaUsage.__repr__."""
        usage = DownloadQuotaUsage(
            user_id="u1",
            period_start=datetime(2025, 3, 1, tzinfo=timezone.utc),
            download_count=2,
        )

        assert repr(usage) == "<DownloadQuotaUsage user=u1 period=2025-03 count=2>"
