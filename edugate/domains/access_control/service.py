# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subscription-based access control service.

This module provides the AccessControlService class for:
- Resolving a user's feature access from their profile
- Free-tier lesson unlocks ("first N subjects/courses, then locked")
- Monthly download quotas for unpaid users
- Community, friend request, meeting and challenge gates
- Messaging contact restrictions

Free-tier unlocks are allocated inside a transaction that locks the user's
profile row and existing permission rows (SELECT ... FOR UPDATE), so
concurrent requests from the same user cannot both spend the last unlock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edugate.core.config.settings import AccessControlSettings
from edugate.domains.access_control.features import resolve_feature_access
from edugate.domains.access_control.grades import (
    COLLEGE_ACCESS_MIN_GRADE,
    get_numeric_grade,
)
from edugate.infrastructure.database.models import (
    DownloadQuotaUsage,
    LessonAccessPermission,
    Profile,
)
from edugate.models.access_control import (
    AccessSummary,
    ContactType,
    DownloadDecision,
    GateDecision,
    LessonAccessDecision,
    UserFeatureAccess,
)
from edugate.utils.datetime import ensure_utc, is_expired, month_start, utc_now

logger = logging.getLogger(__name__)

UnlockScope = Literal["subject", "course"]

# Attempts for allocations that race on a unique constraint
_MAX_ALLOCATION_ATTEMPTS = 2


class AccessControlError(Exception):
    """Raised when an access check cannot be completed."""

    pass


class AccessControlService:
    """Service for subscription-tiered access control.

    Attributes:
        db: Async database session.
        limits: Free-tier limits.
    """

    def __init__(
        self,
        db: AsyncSession,
        limits: AccessControlSettings | None = None,
    ) -> None:
        """Initialize access control service.

        Args:
            db: Async database session.
            limits: Free-tier limits. Defaults to AccessControlSettings().
        """
        self.db = db
        self.limits = limits or AccessControlSettings()

    # =========================================================================
    # Feature access
    # =========================================================================

    @staticmethod
    def check_active_subscription(
        subscription_tier: str | None,
        plan_expiry: datetime | None,
        now: datetime | None = None,
    ) -> bool:
        """Check whether a subscription is currently active.

        A tier without an expiry date was never properly activated.

        Args:
            subscription_tier: Tier stored on the profile.
            plan_expiry: Subscription end. Naive values are taken as UTC.
            now: Reference time. Defaults to now.

        Returns:
            True if the tier is paid and has not expired.
        """
        if not subscription_tier or subscription_tier == "free":
            return False

        return not is_expired(plan_expiry, now)

    async def get_user_feature_access(self, user_id: str) -> UserFeatureAccess:
        """Get the feature access of a user based on grade and subscription.

        A missing profile or a failed lookup yields the restricted default
        instead of an error, so a broken profile never blocks the caller.

        Args:
            user_id: User identifier.

        Returns:
            Feature access together with the profile data it was derived from.
        """
        try:
            profile = await self._get_profile(user_id)
        except SQLAlchemyError as e:
            logger.error("Failed to load profile for user %s: %s", user_id, e)
            await self.db.rollback()
            return self._restricted_access(user_id)

        if profile is None:
            logger.warning(
                "Profile not found for user %s, returning restricted access",
                user_id,
            )
            return self._restricted_access(user_id)

        has_active_subscription = self.check_active_subscription(
            profile.subscription_tier,
            profile.plan_expiry,
        )
        features = resolve_feature_access(
            profile.grade_level or profile.grade,
            has_active_subscription,
            self.limits,
        )

        return UserFeatureAccess(
            **features.model_dump(),
            user_id=user_id,
            grade=profile.grade,
            grade_level=profile.grade_level,
            subscription_tier=profile.subscription_tier,
            has_active_subscription=has_active_subscription,
            role=profile.role or "student",
        )

    # =========================================================================
    # Lessons
    # =========================================================================

    async def can_access_lesson(
        self,
        user_id: str,
        subject_id: str,
        lesson_id: int,
        course_id: str | None = None,
    ) -> LessonAccessDecision:
        """Check, and for free users record, access to a lesson.

        Paid users open everything. Free school learners may unlock a limited
        number of subjects and free college learners a limited number of
        courses; every lesson inside an unlocked subject/course stays open.
        The first request for a new subject/course spends an unlock.

        Args:
            user_id: User identifier.
            subject_id: Subject the lesson belongs to.
            lesson_id: Requested lesson.
            course_id: Course the lesson belongs to (required for college).

        Returns:
            The access decision.

        Raises:
            AccessControlError: If the unlock could not be recorded.
        """
        features = await self.get_user_feature_access(user_id)

        if features.has_active_subscription and features.can_access_all_lessons:
            return LessonAccessDecision(can_access=True)

        if features.free_subject_limit is not None:
            return await self._allocate_unlock(
                features,
                scope="subject",
                limit=features.free_subject_limit,
                subject_id=subject_id,
                lesson_id=lesson_id,
                course_id=course_id,
            )

        if features.free_course_limit is not None:
            if not course_id:
                return LessonAccessDecision(
                    can_access=False,
                    reason="Course ID is required for university students.",
                )
            return await self._allocate_unlock(
                features,
                scope="course",
                limit=features.free_course_limit,
                subject_id=subject_id,
                lesson_id=lesson_id,
                course_id=course_id,
            )

        return LessonAccessDecision(
            can_access=False,
            reason="Upgrade to premium to access this content.",
        )

    async def _allocate_unlock(
        self,
        features: UserFeatureAccess,
        scope: UnlockScope,
        limit: int,
        subject_id: str,
        lesson_id: int,
        course_id: str | None,
    ) -> LessonAccessDecision:
        """Run the locked read-then-insert unlock transaction.

        A unique-constraint violation means a concurrent request inserted the
        same unlock first; the transaction is rolled back and re-evaluated.
        """
        for attempt in range(1, _MAX_ALLOCATION_ATTEMPTS + 1):
            try:
                decision = await self._try_allocate_unlock(
                    features, scope, limit, subject_id, lesson_id, course_id
                )
                await self.db.commit()
                return decision
            except IntegrityError as e:
                await self.db.rollback()
                if attempt == _MAX_ALLOCATION_ATTEMPTS:
                    raise AccessControlError(
                        f"Could not allocate {scope} unlock for user {features.user_id}"
                    ) from e
                logger.info(
                    "Concurrent %s unlock for user %s, re-evaluating",
                    scope,
                    features.user_id,
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise AccessControlError("Failed to check lesson access") from e

        raise AccessControlError(f"Could not allocate {scope} unlock")

    async def _try_allocate_unlock(
        self,
        features: UserFeatureAccess,
        scope: UnlockScope,
        limit: int,
        subject_id: str,
        lesson_id: int,
        course_id: str | None,
    ) -> LessonAccessDecision:
        user_id = features.user_id
        target = subject_id if scope == "subject" else course_id

        # Profile row serializes allocations even before any unlock exists
        await self.db.execute(
            select(Profile.id).where(Profile.user_id == user_id).with_for_update()
        )

        result = await self.db.execute(
            select(
                LessonAccessPermission.subject_id,
                LessonAccessPermission.course_id,
            )
            .where(LessonAccessPermission.user_id == user_id)
            .order_by(LessonAccessPermission.access_granted_at)
            .with_for_update()
        )
        rows = result.all()
        position = 0 if scope == "subject" else 1
        unlocked = _distinct(row[position] for row in rows)

        if target in unlocked:
            return LessonAccessDecision(can_access=True)

        if len(unlocked) >= limit:
            logger.info(
                "Denied %s %s for user %s: %d of %d free unlocks used",
                scope,
                target,
                user_id,
                len(unlocked),
                limit,
            )
            first = unlocked[0] if unlocked else None
            return LessonAccessDecision(
                can_access=False,
                reason=(
                    f"You have already unlocked {len(unlocked)} {scope}(s). "
                    f"Subscribe to access all {scope}s."
                ),
                unlocked_subject_id=first if scope == "subject" else None,
                unlocked_course_id=first if scope == "course" else None,
            )

        # One permission row per (user, subject): a second course in an
        # already used subject cannot be recorded
        if scope == "course":
            taken = [row for row in rows if row[0] == subject_id]
            if taken:
                logger.info(
                    "Denied course %s for user %s: subject %s already unlocked",
                    target,
                    user_id,
                    subject_id,
                )
                return LessonAccessDecision(
                    can_access=False,
                    reason=(
                        f"Subject {subject_id} is already unlocked for another "
                        "course. Subscribe to access all courses."
                    ),
                    unlocked_subject_id=subject_id,
                    unlocked_course_id=taken[0][1],
                )

        self.db.add(
            LessonAccessPermission(
                user_id=user_id,
                subject_id=subject_id,
                course_id=course_id,
                lesson_id=lesson_id,
                subscription_snapshot=features.subscription_tier or "free",
            )
        )
        await self.db.flush()

        logger.info(
            "Granted free %s unlock: user=%s, %s=%s, lesson=%s",
            scope,
            user_id,
            scope,
            target,
            lesson_id,
        )
        return LessonAccessDecision(can_access=True)

    # =========================================================================
    # Downloads
    # =========================================================================

    async def can_download_product(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> DownloadDecision:
        """Check the monthly free download quota without consuming it.

        Args:
            user_id: User identifier.
            now: Reference time selecting the quota period.

        Returns:
            The download decision with remaining downloads (None = unlimited).

        Raises:
            AccessControlError: If the quota could not be read.
        """
        features = await self.get_user_feature_access(user_id)

        if features.has_active_subscription and features.can_access_unlimited_downloads:
            return DownloadDecision(can_download=True)

        limit = self._download_limit(features)
        try:
            current = await self._get_download_count(user_id, month_start(now))
        except SQLAlchemyError as e:
            raise AccessControlError("Failed to check download quota") from e

        if current >= limit:
            return self._quota_exhausted(limit)

        return DownloadDecision(can_download=True, downloads_remaining=limit - current)

    async def increment_download_count(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> int:
        """Count one download against the current month.

        The counter is bumped with a single UPDATE. The month row is created
        on first use; if a concurrent request creates it first, the update
        is retried.

        Args:
            user_id: User identifier.
            now: Time of the download.

        Returns:
            The new download count for the month.

        Raises:
            AccessControlError: If the counter could not be updated.
        """
        timestamp = ensure_utc(now) if now is not None else utc_now()
        period = month_start(timestamp)

        try:
            count = await self._bump_download_count(user_id, period, timestamp)
            if count is None:
                try:
                    self.db.add(
                        DownloadQuotaUsage(
                            user_id=user_id,
                            period_start=period,
                            download_count=1,
                            last_download_at=timestamp,
                        )
                    )
                    await self.db.flush()
                    count = 1
                except IntegrityError:
                    await self.db.rollback()
                    count = await self._bump_download_count(user_id, period, timestamp)
                    if count is None:
                        raise AccessControlError(
                            f"Download quota row for user {user_id} vanished"
                        )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise AccessControlError("Failed to increment download count") from e

        logger.debug("Download counted: user=%s, period=%s, count=%d", user_id, period, count)
        return count

    async def consume_download(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> DownloadDecision:
        """Check the quota and count a download in one locked transaction.

        Paid users pass without being counted.

        Args:
            user_id: User identifier.
            now: Time of the download.

        Returns:
            The download decision; remaining downloads are after this one.

        Raises:
            AccessControlError: If the quota could not be updated.
        """
        features = await self.get_user_feature_access(user_id)

        if features.has_active_subscription and features.can_access_unlimited_downloads:
            return DownloadDecision(can_download=True)

        limit = self._download_limit(features)
        timestamp = ensure_utc(now) if now is not None else utc_now()
        period = month_start(timestamp)

        for attempt in range(1, _MAX_ALLOCATION_ATTEMPTS + 1):
            try:
                result = await self.db.execute(
                    select(DownloadQuotaUsage)
                    .where(
                        DownloadQuotaUsage.user_id == user_id,
                        DownloadQuotaUsage.period_start == period,
                    )
                    .with_for_update()
                )
                usage = result.scalar_one_or_none()
                current = usage.download_count if usage is not None else 0

                if current >= limit:
                    await self.db.commit()
                    logger.info(
                        "Download quota exhausted for user %s (%d/%d)",
                        user_id,
                        current,
                        limit,
                    )
                    return self._quota_exhausted(limit)

                if usage is None:
                    usage = DownloadQuotaUsage(
                        user_id=user_id,
                        period_start=period,
                        download_count=0,
                    )
                    self.db.add(usage)

                usage.download_count = current + 1
                usage.last_download_at = timestamp
                await self.db.flush()
                await self.db.commit()

                return DownloadDecision(
                    can_download=True,
                    downloads_remaining=limit - usage.download_count,
                )
            except IntegrityError as e:
                await self.db.rollback()
                if attempt == _MAX_ALLOCATION_ATTEMPTS:
                    raise AccessControlError("Failed to record download") from e
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise AccessControlError("Failed to record download") from e

        raise AccessControlError("Failed to record download")

    # =========================================================================
    # Feature gates
    # =========================================================================

    async def can_access_community(self, user_id: str) -> GateDecision:
        """Community is for paid learners in grade 12 and above."""
        features = await self.get_user_feature_access(user_id)

        if features.can_access_community:
            return GateDecision(allowed=True)

        if self._is_below_college_grade(features):
            return GateDecision(
                allowed=False,
                reason=(
                    "Community access is only available for college/university "
                    "students (Grade 12+) with an active subscription."
                ),
            )
        if not features.has_active_subscription:
            return GateDecision(
                allowed=False,
                reason="Community access requires an active subscription.",
            )
        return GateDecision(
            allowed=False,
            reason="You do not have access to community features.",
        )

    async def can_send_friend_request(self, user_id: str) -> GateDecision:
        """Friend requests are for paid learners in grade 12 and above."""
        features = await self.get_user_feature_access(user_id)

        if features.can_send_friend_requests:
            return GateDecision(allowed=True)

        if self._is_below_college_grade(features):
            return GateDecision(
                allowed=False,
                reason=(
                    "Friend requests are only available for college/university "
                    "students (Grade 12+) for child safety."
                ),
            )
        if not features.has_active_subscription:
            return GateDecision(
                allowed=False,
                reason="Sending friend requests requires an active subscription.",
            )
        return GateDecision(
            allowed=False,
            reason="You do not have permission to send friend requests.",
        )

    async def can_join_meeting(self, user_id: str) -> GateDecision:
        """Meetings require an active subscription."""
        features = await self.get_user_feature_access(user_id)
        return self._subscription_gate(
            features,
            features.can_access_meetings,
            "Joining meetings requires an active subscription.",
            "You do not have permission to join meetings.",
        )

    async def can_access_daily_challenge(self, user_id: str) -> GateDecision:
        """Daily challenges require an active subscription."""
        features = await self.get_user_feature_access(user_id)
        return self._subscription_gate(
            features,
            features.can_access_daily_challenge,
            "Daily challenges require an active subscription.",
            "You do not have access to daily challenges.",
        )

    async def can_access_whatsapp_quiz(self, user_id: str) -> GateDecision:
        """WhatsApp quizzes require an active subscription."""
        features = await self.get_user_feature_access(user_id)
        return self._subscription_gate(
            features,
            features.can_access_whatsapp_quiz,
            "WhatsApp quizzes require an active subscription.",
            "You do not have access to WhatsApp quizzes.",
        )

    # =========================================================================
    # Messaging
    # =========================================================================

    async def get_allowed_message_contacts(self, user_id: str) -> list[ContactType]:
        """Get the contact categories a user may message.

        Falls back to admins only when the profile cannot be read.
        """
        features = await self.get_user_feature_access(user_id)
        return list(features.allowed_message_contacts)

    async def can_message_contact(
        self,
        user_id: str,
        contact_type: ContactType | str,
    ) -> GateDecision:
        """Check whether a user may message a given contact category.

        Unknown categories are denied.
        """
        try:
            contact = ContactType(contact_type)
        except ValueError:
            return GateDecision(
                allowed=False,
                reason=f"Unknown contact type: {contact_type}.",
            )

        allowed = await self.get_allowed_message_contacts(user_id)
        if contact in allowed:
            return GateDecision(allowed=True)
        return GateDecision(
            allowed=False,
            reason=f"You cannot message {contact.value} contacts with your current plan.",
        )

    # =========================================================================
    # Summary
    # =========================================================================

    async def get_access_summary(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> AccessSummary:
        """Summarize a user's free-tier consumption.

        Args:
            user_id: User identifier.
            now: Reference time selecting the quota period.

        Returns:
            Feature access, unlocked subjects/courses and download usage.

        Raises:
            AccessControlError: If usage could not be read.
        """
        features = await self.get_user_feature_access(user_id)

        try:
            result = await self.db.execute(
                select(
                    LessonAccessPermission.subject_id,
                    LessonAccessPermission.course_id,
                )
                .where(LessonAccessPermission.user_id == user_id)
                .order_by(LessonAccessPermission.access_granted_at)
            )
            rows = result.all()
            used = await self._get_download_count(user_id, month_start(now))
        except SQLAlchemyError as e:
            raise AccessControlError("Failed to load access summary") from e

        if features.has_active_subscription and features.can_access_unlimited_downloads:
            remaining = None
        else:
            remaining = max(self._download_limit(features) - used, 0)

        return AccessSummary(
            feature_access=features,
            unlocked_subject_ids=_distinct(row[0] for row in rows),
            unlocked_course_ids=_distinct(row[1] for row in rows),
            downloads_used=used,
            downloads_remaining=remaining,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_profile(self, user_id: str) -> Profile | None:
        query = select(Profile).where(Profile.user_id == user_id).limit(1)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_download_count(self, user_id: str, period: datetime) -> int:
        result = await self.db.execute(
            select(DownloadQuotaUsage.download_count).where(
                DownloadQuotaUsage.user_id == user_id,
                DownloadQuotaUsage.period_start == period,
            )
        )
        return result.scalar_one_or_none() or 0

    async def _bump_download_count(
        self,
        user_id: str,
        period: datetime,
        timestamp: datetime,
    ) -> int | None:
        """Atomically add one to the month's counter; None if no row exists."""
        result = await self.db.execute(
            update(DownloadQuotaUsage)
            .where(
                DownloadQuotaUsage.user_id == user_id,
                DownloadQuotaUsage.period_start == period,
            )
            .values(
                download_count=DownloadQuotaUsage.download_count + 1,
                last_download_at=timestamp,
                updated_at=timestamp,
            )
            .returning(DownloadQuotaUsage.download_count)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    def _download_limit(self, features: UserFeatureAccess) -> int:
        if features.free_downloads_per_month is not None:
            return features.free_downloads_per_month
        return self.limits.free_downloads_per_month

    def _restricted_access(self, user_id: str) -> UserFeatureAccess:
        features = resolve_feature_access(None, False, self.limits)
        return UserFeatureAccess(**features.model_dump(), user_id=user_id)

    @staticmethod
    def _quota_exhausted(limit: int) -> DownloadDecision:
        return DownloadDecision(
            can_download=False,
            downloads_remaining=0,
            reason=(
                f"You've reached your free download limit of {limit} downloads "
                "this month. Subscribe for unlimited downloads."
            ),
        )

    @staticmethod
    def _is_below_college_grade(features: UserFeatureAccess) -> bool:
        numeric = get_numeric_grade(features.grade_level or features.grade)
        return numeric is not None and numeric < COLLEGE_ACCESS_MIN_GRADE

    @staticmethod
    def _subscription_gate(
        features: UserFeatureAccess,
        flag: bool,
        subscription_reason: str,
        generic_reason: str,
    ) -> GateDecision:
        if flag:
            return GateDecision(allowed=True)
        if not features.has_active_subscription:
            return GateDecision(allowed=False, reason=subscription_reason)
        return GateDecision(allowed=False, reason=generic_reason)


def _distinct(values) -> list[str]:
    """Unique non-null values in first-seen order."""
    return list(dict.fromkeys(v for v in values if v is not None))
