# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Feature-access resolution from grade level and subscription state.

The policy, by grade band:

- Unknown grade: everything locked, one free subject or course, 5 downloads.
- Grades 1-7: paid unlocks lessons, meetings, challenges and unlimited
  downloads. Community and friend requests are never available. Messaging
  is limited to admins.
- Grades 8-11: as grades 1-7, except paid learners may also message teachers.
- Grade 12+: paid unlocks everything including community, friend requests
  and messaging students/community. Unpaid learners get one free course.

Unpaid school learners (grades 1-11) get one free subject instead.
"""

from edugate.core.config.settings import AccessControlSettings
from edugate.domains.access_control.grades import GradeBand, GradeInput, get_grade_band, get_numeric_grade
from edugate.models.access_control import ContactType, FeatureAccess

ADMIN_ONLY = [ContactType.ADMIN]
ADMIN_AND_TEACHERS = [ContactType.ADMIN, ContactType.TEACHER]
ALL_CONTACTS = [
    ContactType.ADMIN,
    ContactType.TEACHER,
    ContactType.STUDENT,
    ContactType.COMMUNITY,
]


def _paid(contacts: list[ContactType], community: bool) -> FeatureAccess:
    return FeatureAccess(
        can_access_all_lessons=True,
        can_access_meetings=True,
        can_access_daily_challenge=True,
        can_access_whatsapp_quiz=True,
        can_access_community=community,
        can_send_friend_requests=community,
        can_access_unlimited_downloads=True,
        allowed_message_contacts=list(contacts),
        free_subject_limit=None,
        free_course_limit=None,
        free_downloads_per_month=None,
    )


def _unpaid(
    subject_limit: int | None,
    course_limit: int | None,
    downloads: int,
) -> FeatureAccess:
    return FeatureAccess(
        allowed_message_contacts=list(ADMIN_ONLY),
        free_subject_limit=subject_limit,
        free_course_limit=course_limit,
        free_downloads_per_month=downloads,
    )


def resolve_feature_access(
    grade_level: GradeInput,
    has_active_subscription: bool,
    limits: AccessControlSettings | None = None,
) -> FeatureAccess:
    """Derive the capability set for a grade level and subscription state.

    Args:
        grade_level: Integer grade, grade string, "college"/"university" or None.
        has_active_subscription: Whether the learner holds a live paid plan.
        limits: Free-tier limits. Defaults to AccessControlSettings().

    Returns:
        FeatureAccess describing what the learner may do.
    """
    limits = limits or AccessControlSettings()
    band = get_grade_band(get_numeric_grade(grade_level))

    if band is None:
        # Subscription state is ignored until the grade is known
        return _unpaid(
            limits.free_subject_limit,
            limits.free_course_limit,
            limits.free_downloads_per_month,
        )

    if band is GradeBand.ELEMENTARY:
        if has_active_subscription:
            return _paid(ADMIN_ONLY, community=False)
        return _unpaid(limits.free_subject_limit, None, limits.free_downloads_per_month)

    if band is GradeBand.HIGH_SCHOOL:
        if has_active_subscription:
            return _paid(ADMIN_AND_TEACHERS, community=False)
        return _unpaid(limits.free_subject_limit, None, limits.free_downloads_per_month)

    if has_active_subscription:
        return _paid(ALL_CONTACTS, community=True)
    return _unpaid(None, limits.free_course_limit, limits.free_downloads_per_month)
