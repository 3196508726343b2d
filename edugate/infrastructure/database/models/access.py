# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subscription access control tracking models.

LessonAccessPermission records which subject (or course) an unpaid learner
spent their free unlock on. DownloadQuotaUsage keeps one counter row per
learner per calendar month, so quotas roll over without mass updates.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from edugate.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from edugate.utils.datetime import utc_now


class LessonAccessPermission(UUIDPrimaryKeyMixin, Base):
    """A free-tier unlock of one subject or course.

    Attributes:
        user_id: Learner who unlocked the content.
        subject_id: Unlocked subject.
        course_id: Unlocked course (college/university learners).
        lesson_id: Lesson whose request triggered the unlock.
        access_granted_at: When the unlock was recorded.
        subscription_snapshot: Subscription tier at grant time, for audit.
    """

    __tablename__ = "lesson_access_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "subject_id", name="uniq_user_subject_lesson"),
        Index("idx_lesson_access_user", "user_id"),
        Index("idx_lesson_access_subject", "subject_id"),
        Index("idx_lesson_access_course", "course_id"),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False)
    course_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    lesson_id: Mapped[int] = mapped_column(Integer, nullable=False)
    access_granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    subscription_snapshot: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    def __repr__(self) -> str:
        return (
            f"<LessonAccessPermission user={self.user_id} "
            f"subject={self.subject_id} course={self.course_id}>"
        )


class DownloadQuotaUsage(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Per-month product download counter for one learner.

    Attributes:
        user_id: Learner the counter belongs to.
        period_start: First instant of the calendar month (UTC).
        download_count: Downloads made in the period.
        last_download_at: Time of the most recent download.
    """

    __tablename__ = "download_quota_usage"
    __table_args__ = (
        UniqueConstraint("user_id", "period_start", name="uniq_user_period"),
        Index("idx_download_quota_user", "user_id"),
        Index("idx_download_quota_period", "period_start"),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_download_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<DownloadQuotaUsage user={self.user_id} "
            f"period={self.period_start:%Y-%m} count={self.download_count}>"
        )
