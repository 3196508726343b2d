# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access control API endpoints.

This module provides endpoints for the current user's plan-based access:
- GET /features - Resolved feature access
- GET /summary - Unlocked subjects/courses and download usage
- GET /plans - Subscription plan catalog (public)
- POST /lessons/{subject_id}/{lesson_id} - Open a lesson, spending a free unlock if needed
- GET /downloads/quota - Remaining free downloads this month
- POST /downloads - Count one download against the quota

Feature gates (informational, always 200):
- GET /community, /friend-requests, /meetings, /daily-challenge, /whatsapp-quiz

Messaging:
- GET /messaging/contacts - Contact categories the user may message
- GET /messaging/contacts/{contact_type} - Check one contact category
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from edugate.api.dependencies import (
    AccessControl,
    AuthenticatedUser,
    get_message_contacts,
    require_lesson_access,
)
from edugate.api.middleware.rate_limit import RATE_LIMIT_DOWNLOADS, limiter
from edugate.domains.access_control.plans import list_plans, recommend_plan
from edugate.domains.access_control.service import AccessControlError
from edugate.models.access_control import (
    AccessSummary,
    ContactType,
    DownloadDecision,
    FeatureAccessResponse,
    GateDecision,
    LessonAccessDecision,
    MessageContactsResponse,
    PlanCatalogResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _server_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": message},
    )


@router.get(
    "/features",
    response_model=FeatureAccessResponse,
    summary="Get feature access",
    description="Feature access of the current user based on grade and subscription.",
)
async def get_feature_access(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> FeatureAccessResponse:
    """Get the current user's feature access."""
    feature_access = await service.get_user_feature_access(current_user.id)
    return FeatureAccessResponse(feature_access=feature_access)


@router.get(
    "/summary",
    response_model=AccessSummary,
    summary="Get access summary",
)
async def get_access_summary(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> AccessSummary:
    """Get unlocked subjects/courses and this month's download usage.

    Raises:
        HTTPException: 500 if usage could not be read.
    """
    try:
        return await service.get_access_summary(current_user.id)
    except AccessControlError as e:
        logger.error("Failed to build access summary for %s: %s", current_user.id, e)
        raise _server_error("Failed to get access summary")


@router.get(
    "/plans",
    response_model=PlanCatalogResponse,
    summary="List subscription plans",
)
async def get_plans(
    grade_level: Annotated[
        str | None,
        Query(description="Grade level to recommend a plan for"),
    ] = None,
) -> PlanCatalogResponse:
    """List the grade-based subscription plans.

    Args:
        grade_level: Optional grade; adds the recommended plan when given.

    Returns:
        The plan catalog.
    """
    recommended = recommend_plan(grade_level) if grade_level else None
    return PlanCatalogResponse(plans=list_plans(), recommended=recommended)


@router.post(
    "/lessons/{subject_id}/{lesson_id}",
    response_model=LessonAccessDecision,
    summary="Open a lesson",
    description=(
        "Checks lesson access. Free users spend an unlock on the first lesson "
        "of a new subject (or course, for college/university)."
    ),
)
async def open_lesson(
    subject_id: str,
    lesson_id: int,
    decision: Annotated[LessonAccessDecision, Depends(require_lesson_access)],
    course_id: Annotated[str | None, Query(description="Course of the lesson")] = None,
) -> LessonAccessDecision:
    """Return the granted lesson access decision (403 is raised when denied)."""
    logger.debug("Lesson %s/%s opened (course=%s)", subject_id, lesson_id, course_id)
    return decision


@router.get(
    "/downloads/quota",
    response_model=DownloadDecision,
    summary="Get download quota",
)
async def get_download_quota(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> DownloadDecision:
    """Get whether the user can download and how many downloads remain."""
    try:
        return await service.can_download_product(current_user.id)
    except AccessControlError as e:
        logger.error("Download quota check failed for %s: %s", current_user.id, e)
        raise _server_error("Failed to check download access")


@router.post(
    "/downloads",
    response_model=DownloadDecision,
    summary="Record a download",
)
@limiter.limit(RATE_LIMIT_DOWNLOADS)
async def record_download(
    request: Request,
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> DownloadDecision:
    """Count one download against the monthly free quota.

    Raises:
        HTTPException: 403 if the quota is exhausted, 500 on failure.
    """
    try:
        decision = await service.consume_download(current_user.id)
    except AccessControlError as e:
        logger.error("Recording download failed for %s: %s", current_user.id, e)
        raise _server_error("Failed to check download access")

    if not decision.can_download:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": decision.reason or "Download limit reached",
                "downloads_remaining": 0,
                "requires_subscription": True,
            },
        )
    return decision


@router.get("/community", response_model=GateDecision, summary="Check community access")
async def check_community(current_user: AuthenticatedUser, service: AccessControl) -> GateDecision:
    return await service.can_access_community(current_user.id)


@router.get("/friend-requests", response_model=GateDecision, summary="Check friend request access")
async def check_friend_requests(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    return await service.can_send_friend_request(current_user.id)


@router.get("/meetings", response_model=GateDecision, summary="Check meeting access")
async def check_meetings(current_user: AuthenticatedUser, service: AccessControl) -> GateDecision:
    return await service.can_join_meeting(current_user.id)


@router.get("/daily-challenge", response_model=GateDecision, summary="Check daily challenge access")
async def check_daily_challenge(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    return await service.can_access_daily_challenge(current_user.id)


@router.get("/whatsapp-quiz", response_model=GateDecision, summary="Check WhatsApp quiz access")
async def check_whatsapp_quiz(
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    return await service.can_access_whatsapp_quiz(current_user.id)


@router.get(
    "/messaging/contacts",
    response_model=MessageContactsResponse,
    summary="List allowed message contacts",
)
async def list_message_contacts(
    contacts: Annotated[list[ContactType], Depends(get_message_contacts)],
) -> MessageContactsResponse:
    return MessageContactsResponse(allowed_contacts=contacts)


@router.get(
    "/messaging/contacts/{contact_type}",
    response_model=GateDecision,
    summary="Check a message contact category",
)
async def check_message_contact(
    contact_type: ContactType,
    current_user: AuthenticatedUser,
    service: AccessControl,
) -> GateDecision:
    return await service.can_message_contact(current_user.id, contact_type)
