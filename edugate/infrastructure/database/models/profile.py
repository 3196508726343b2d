# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner profile model.

Only the columns the access control engine reads are mapped here. The
profile row doubles as the per-user lock target when a free-tier unlock
is allocated.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from edugate.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# Values accepted in profiles.grade_level
GRADE_LEVELS = (
    "1", "2", "3", "4", "5", "6", "7", "8", "9", "10", "11", "12",
    "college", "university",
)


class Profile(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """User profile with grade and subscription state.

    Attributes:
        user_id: Owning user identifier (unique).
        grade: Legacy numeric grade (1-12, 13+ for college/university).
        grade_level: Standardized grade level ("1".."12", "college", "university").
        subscription_tier: elementary, high_school, college_university, free or empty.
        plan_expiry: When the current subscription ends.
        role: Platform role, defaults to student.
    """

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    grade_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    subscription_tier: Mapped[str | None] = mapped_column(String(50), nullable=True)
    plan_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    role: Mapped[str | None] = mapped_column(String(50), nullable=True, default="student")

    def __repr__(self) -> str:
        return f"<Profile user={self.user_id} grade={self.grade_level or self.grade}>"
