# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the platform database.

Importing this package registers every table on Base.metadata.
"""

from edugate.infrastructure.database.models.access import (
    DownloadQuotaUsage,
    LessonAccessPermission,
)
from edugate.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    generate_uuid,
)
from edugate.infrastructure.database.models.profile import GRADE_LEVELS, Profile

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "generate_uuid",
    "Profile",
    "GRADE_LEVELS",
    "LessonAccessPermission",
    "DownloadQuotaUsage",
]
