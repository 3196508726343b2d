# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access control schema.

Revision ID: 001_access_control
Revises: None
Create Date: 2025-01-20

Creates profiles, lesson_access_permissions and download_quota_usage.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_access_control"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create access control tables."""
    # ==========================================================================
    # 1. profiles table
    # ==========================================================================
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("grade", sa.Integer, nullable=False),
        sa.Column("grade_level", sa.String(20), nullable=True),
        sa.Column("subscription_tier", sa.String(50), nullable=True),
        sa.Column("plan_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("role", sa.String(50), nullable=True, server_default="student"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
    )

    # ==========================================================================
    # 2. lesson_access_permissions table
    # ==========================================================================
    op.create_table(
        "lesson_access_permissions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("subject_id", sa.String(64), nullable=False),
        sa.Column("course_id", sa.String(64), nullable=True),
        sa.Column("lesson_id", sa.Integer, nullable=False),
        sa.Column(
            "access_granted_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("subscription_snapshot", sa.String(50), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_lesson_access_permissions"),
        sa.UniqueConstraint("user_id", "subject_id", name="uniq_user_subject_lesson"),
    )
    op.create_index("idx_lesson_access_user", "lesson_access_permissions", ["user_id"])
    op.create_index("idx_lesson_access_subject", "lesson_access_permissions", ["subject_id"])
    op.create_index("idx_lesson_access_course", "lesson_access_permissions", ["course_id"])

    # ==========================================================================
    # 3. download_quota_usage table
    # ==========================================================================
    op.create_table(
        "download_quota_usage",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("download_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_download_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_download_quota_usage"),
        sa.UniqueConstraint("user_id", "period_start", name="uniq_user_period"),
    )
    op.create_index("idx_download_quota_user", "download_quota_usage", ["user_id"])
    op.create_index("idx_download_quota_period", "download_quota_usage", ["period_start"])


def downgrade() -> None:
    """Drop access control tables."""
    op.drop_index("idx_download_quota_period", table_name="download_quota_usage")
    op.drop_index("idx_download_quota_user", table_name="download_quota_usage")
    op.drop_table("download_quota_usage")

    op.drop_index("idx_lesson_access_course", table_name="lesson_access_permissions")
    op.drop_index("idx_lesson_access_subject", table_name="lesson_access_permissions")
    op.drop_index("idx_lesson_access_user", table_name="lesson_access_permissions")
    op.drop_table("lesson_access_permissions")

    op.drop_table("profiles")
