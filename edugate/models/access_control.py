# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access control request/response models.

Pydantic models for:
- Resolved feature access (capability set)
- Lesson, download and feature gate decisions
- Access usage summaries
- Subscription plan catalog
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class ContactType(str, Enum):
    """Categories of users a learner may message."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    COMMUNITY = "community"


class FeatureAccess(BaseModel):
    """Capability set derived from grade level and subscription state."""

    can_access_all_lessons: bool = False
    can_access_meetings: bool = False
    can_access_daily_challenge: bool = False
    can_access_whatsapp_quiz: bool = False
    can_access_community: bool = False
    can_send_friend_requests: bool = False
    can_access_unlimited_downloads: bool = False
    allowed_message_contacts: list[ContactType] = Field(
        default_factory=lambda: [ContactType.ADMIN]
    )
    lesson_limit: int | None = Field(
        default=None,
        description="Always unlimited: every lesson of an unlocked subject/course is open",
    )
    free_subject_limit: int | None = Field(
        default=None,
        description="Subjects an unpaid school learner may unlock (None = not applicable)",
    )
    free_course_limit: int | None = Field(
        default=None,
        description="Courses an unpaid college learner may unlock (None = not applicable)",
    )
    free_downloads_per_month: int | None = Field(
        default=None,
        description="Monthly free downloads (None = unlimited)",
    )


class UserFeatureAccess(FeatureAccess):
    """Feature access for a specific user, with the profile data it came from."""

    user_id: str
    grade: int | None = None
    grade_level: str | None = None
    subscription_tier: str | None = None
    has_active_subscription: bool = False
    role: str = "student"


class LessonAccessDecision(BaseModel):
    """Outcome of a lesson access check."""

    can_access: bool
    reason: str | None = None
    unlocked_subject_id: str | None = None
    unlocked_course_id: str | None = None


class DownloadDecision(BaseModel):
    """Outcome of a download quota check."""

    can_download: bool
    downloads_remaining: int | None = Field(
        default=None,
        description="None means unlimited",
    )
    reason: str | None = None


class GateDecision(BaseModel):
    """Outcome of a boolean feature gate (community, meetings, ...)."""

    allowed: bool
    reason: str | None = None


class AccessSummary(BaseModel):
    """Free-tier consumption overview for one user."""

    feature_access: UserFeatureAccess
    unlocked_subject_ids: list[str] = Field(default_factory=list)
    unlocked_course_ids: list[str] = Field(default_factory=list)
    downloads_used: int = 0
    downloads_remaining: int | None = None


class FeatureAccessResponse(BaseModel):
    """Envelope returned by the feature access endpoint."""

    success: bool = True
    feature_access: UserFeatureAccess


class MessageContactsResponse(BaseModel):
    """Contact categories the current user may message."""

    allowed_contacts: list[ContactType]


class PlanPricing(BaseModel):
    """Monthly and yearly price of a plan."""

    monthly: Decimal
    yearly: Decimal


class SubscriptionPlan(BaseModel):
    """A grade-based subscription plan."""

    tier: str
    name: str
    grade_range: str
    description: str
    pricing: PlanPricing
    features: list[str]


class PlanCatalogResponse(BaseModel):
    """All plans, optionally with the plan recommended for a grade."""

    plans: list[SubscriptionPlan]
    recommended: SubscriptionPlan | None = None
