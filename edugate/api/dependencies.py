# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints:
- Database sessions
- Authenticated users
- The access control service
- Feature gates that reject requests the user's plan does not cover

Gate failures are raised as HTTPException with a dict detail; the app's
exception handler renders the dict as the response body, e.g.
403 {"error": "...", "requires_subscription": true}.

Example:
    @router.post("/meetings/{meeting_id}/join")
    async def join_meeting(
        meeting_id: str,
        _: GateDecision = Depends(require_meeting_access),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator, NoReturn

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from edugate.api.middleware.auth import CurrentUser, get_current_user
from edugate.core.config import get_settings
from edugate.domains.access_control.service import (
    AccessControlError,
    AccessControlService,
)
from edugate.infrastructure.database.connection import DatabaseError, get_session
from edugate.models.access_control import (
    ContactType,
    DownloadDecision,
    GateDecision,
    LessonAccessDecision,
)

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Yields:
        AsyncSession committed after the request.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def get_optional_user(request: Request) -> CurrentUser | None:
    """Get current user if authenticated, None otherwise."""
    return get_current_user(request)


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: 401 if not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_access_control_service(
    db: AsyncSession = Depends(get_db),
) -> AccessControlService:
    """Get access control service configured with the free-tier limits."""
    return AccessControlService(db=db, limits=get_settings().access)


DB = Annotated[AsyncSession, Depends(get_db)]
OptionalUser = Annotated[CurrentUser | None, Depends(get_optional_user)]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
AccessControl = Annotated[AccessControlService, Depends(get_access_control_service)]


# =========================================================================
# Feature Gates
# =========================================================================


def _forbidden(reason: str | None, default: str, **flags: object) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": reason or default, **flags},
    )


def _check_failed(feature: str, error: Exception) -> NoReturn:
    logger.error("%s access check failed: %s", feature.capitalize(), error)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": f"Failed to check {feature} access"},
    ) from error


async def require_lesson_access(
    request: Request,
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> LessonAccessDecision:
    """Require access to the lesson named by the request.

    Reads subject_id and lesson_id from the path (or query) and an optional
    course_id. For free users the first request for a new subject/course
    spends an unlock.

    Raises:
        HTTPException: 400 if ids are missing, 403 if the lesson is locked.
    """
    params = {**request.query_params, **request.path_params}
    subject_id = params.get("subject_id")
    lesson_raw = params.get("lesson_id")
    course_id = params.get("course_id") or None

    if not subject_id or not lesson_raw:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Lesson ID and Subject ID are required"},
        )
    try:
        lesson_id = int(lesson_raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Lesson ID must be an integer"},
        )

    try:
        decision = await service.can_access_lesson(
            current_user.id, subject_id, lesson_id, course_id
        )
    except (AccessControlError, DatabaseError) as e:
        _check_failed("lesson", e)

    if not decision.can_access:
        raise _forbidden(
            decision.reason,
            "Access denied",
            unlocked_subject_id=decision.unlocked_subject_id,
            unlocked_course_id=decision.unlocked_course_id,
            requires_subscription=True,
        )
    return decision


async def require_meeting_access(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    """Require permission to join meetings."""
    try:
        decision = await service.can_join_meeting(current_user.id)
    except (AccessControlError, DatabaseError) as e:
        _check_failed("meeting", e)

    if not decision.allowed:
        raise _forbidden(
            decision.reason,
            "Meeting access denied",
            requires_subscription=True,
        )
    return decision


async def require_community_access(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    """Require community access (grade 12+ with an active subscription)."""
    try:
        decision = await service.can_access_community(current_user.id)
    except (AccessControlError, DatabaseError) as e:
        _check_failed("community", e)

    if not decision.allowed:
        raise _forbidden(
            decision.reason,
            "Community access denied",
            requires_grade_12_plus=True,
            requires_subscription=True,
        )
    return decision


async def require_friend_request_access(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    """Require permission to send friend requests."""
    try:
        decision = await service.can_send_friend_request(current_user.id)
    except (AccessControlError, DatabaseError) as e:
        _check_failed("friend request", e)

    if not decision.allowed:
        raise _forbidden(
            decision.reason,
            "Friend request access denied",
            requires_grade_12_plus=True,
            requires_subscription=True,
        )
    return decision


async def require_download_quota(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> DownloadDecision:
    """Require remaining download quota without consuming it.

    Returns:
        The decision, so handlers can report downloads_remaining.
    """
    try:
        decision = await service.can_download_product(current_user.id)
    except (AccessControlError, DatabaseError) as e:
        _check_failed("download", e)

    if not decision.can_download:
        raise _forbidden(
            decision.reason,
            "Download limit reached",
            downloads_remaining=0,
            requires_subscription=True,
        )
    return decision


async def require_daily_challenge_access(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    """Require access to daily challenges."""
    try:
        decision = await service.can_access_daily_challenge(current_user.id)
    except (AccessControlError, DatabaseError) as e:
        _check_failed("daily challenge", e)

    if not decision.allowed:
        raise _forbidden(
            decision.reason,
            "Daily challenge access denied",
            requires_subscription=True,
        )
    return decision


async def get_message_contacts(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> list[ContactType]:
    """Get the contact categories the current user may message."""
    try:
        return await service.get_allowed_message_contacts(current_user.id)
    except (AccessControlError, DatabaseError) as e:
        _check_failed("messaging", e)
