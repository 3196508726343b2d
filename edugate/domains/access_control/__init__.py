# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subscription-based access control domain.

This module provides:
- Grade parsing and grade band mapping
- Feature access resolution per grade band and subscription state
- The grade-based subscription plan catalog
- AccessControlService for free-tier unlocks, download quotas and gates

Example:
    from edugate.domains.access_control import AccessControlService

    service = AccessControlService(db)
    decision = await service.can_access_lesson(user_id, "math", 3)
"""

from edugate.domains.access_control.features import resolve_feature_access
from edugate.domains.access_control.grades import (
    COLLEGE_ACCESS_MIN_GRADE,
    COLLEGE_GRADE,
    GradeBand,
    SubscriptionTier,
    get_grade_band,
    get_numeric_grade,
    get_subscription_tier_from_grade,
    should_have_college_access,
)
from edugate.domains.access_control.plans import (
    GRADE_SUBSCRIPTION_PLANS,
    get_plan,
    list_plans,
    recommend_plan,
)
from edugate.domains.access_control.service import (
    AccessControlError,
    AccessControlService,
)

__all__ = [
    # Service
    "AccessControlService",
    "AccessControlError",
    # Features
    "resolve_feature_access",
    # Grades
    "COLLEGE_GRADE",
    "COLLEGE_ACCESS_MIN_GRADE",
    "GradeBand",
    "SubscriptionTier",
    "get_numeric_grade",
    "get_grade_band",
    "get_subscription_tier_from_grade",
    "should_have_college_access",
    # Plans
    "GRADE_SUBSCRIPTION_PLANS",
    "get_plan",
    "list_plans",
    "recommend_plan",
]
