# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the feature gate dependencies.

Each gate is mounted on a small FastAPI app so its status codes and error
bodies can be checked without the full application.
"""

from typing import Annotated
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from edugate.api.app import json_http_exception_handler
from edugate.api.dependencies import (
    get_access_control_service,
    get_message_contacts,
    require_auth,
    require_community_access,
    require_daily_challenge_access,
    require_download_quota,
    require_friend_request_access,
    require_lesson_access,
    require_meeting_access,
)
from edugate.api.middleware.auth import CurrentUser
from edugate.domains.access_control.service import AccessControlError
from edugate.infrastructure.database.connection import DatabaseError
from edugate.models.access_control import (
    ContactType,
    DownloadDecision,
    GateDecision,
    LessonAccessDecision,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def service() -> MagicMock:
    service = MagicMock()
    service.can_access_lesson = AsyncMock(return_value=LessonAccessDecision(can_access=True))
    service.can_join_meeting = AsyncMock(return_value=GateDecision(allowed=True))
    service.can_access_community = AsyncMock(return_value=GateDecision(allowed=True))
    service.can_send_friend_request = AsyncMock(return_value=GateDecision(allowed=True))
    service.can_download_product = AsyncMock(
        return_value=DownloadDecision(can_download=True, downloads_remaining=2)
    )
    service.can_access_daily_challenge = AsyncMock(return_value=GateDecision(allowed=True))
    service.get_allowed_message_contacts = AsyncMock(return_value=[ContactType.ADMIN])
    return service


@pytest.fixture
def client(service: MagicMock) -> TestClient:
    """Small app exposing every gate dependency."""
    app = FastAPI()
    app.add_exception_handler(StarletteHTTPException, json_http_exception_handler)
    app.dependency_overrides[require_auth] = lambda: CurrentUser(id="user-1")
    app.dependency_overrides[get_access_control_service] = lambda: service

    @app.get("/subjects/{subject_id}/lessons/{lesson_id}")
    async def lesson(decision: Annotated[LessonAccessDecision, Depends(require_lesson_access)]):
        return decision

    @app.get("/lesson")
    async def lesson_by_query(decision: Annotated[LessonAccessDecision, Depends(require_lesson_access)]):
        return decision

    @app.post("/meetings/{meeting_id}/join")
    async def join(meeting_id: str, _: Annotated[GateDecision, Depends(require_meeting_access)]):
        return {"joined": meeting_id}

    @app.get("/community")
    async def community(_: Annotated[GateDecision, Depends(require_community_access)]):
        return {"ok": True}

    @app.post("/friends")
    async def friends(_: Annotated[GateDecision, Depends(require_friend_request_access)]):
        return {"ok": True}

    @app.get("/products/{product_id}/download")
    async def download(decision: Annotated[DownloadDecision, Depends(require_download_quota)]):
        return decision

    @app.get("/challenge")
    async def challenge(_: Annotated[GateDecision, Depends(require_daily_challenge_access)]):
        return {"ok": True}

    @app.get("/contacts")
    async def contacts(allowed: Annotated[list[ContactType], Depends(get_message_contacts)]):
        return {"contacts": allowed}

    return TestClient(app)


class TestRequireLessonAccess:
    """Tests for require_lesson_access."""

    def test_path_params(self, client, service) -> None:
        """Test ids taken from the path."""
        response = client.get("/subjects/math/lessons/5")

        assert response.status_code == 200
        service.can_access_lesson.assert_awaited_once_with("user-1", "math", 5, None)

    def test_query_params(self, client, service) -> None:
        """Test ids taken from the query string."""
        response = client.get(
            "/lesson",
            params={"subject_id": "cs", "lesson_id": "2", "course_id": "cs101"},
        )

        assert response.status_code == 200
        service.can_access_lesson.assert_awaited_once_with("user-1", "cs", 2, "cs101")

    def test_missing_ids(self, client, service) -> None:
        """Test the 400 body when ids are missing."""
        response = client.get("/lesson", params={"subject_id": "math"})

        assert response.status_code == 400
        assert response.json() == {"error": "Lesson ID and Subject ID are required"}
        service.can_access_lesson.assert_not_awaited()

    def test_non_integer_lesson(self, client) -> None:
        """Test the 400 body for a malformed lesson id."""
        response = client.get("/subjects/math/lessons/intro")

        assert response.status_code == 400
        assert response.json() == {"error": "Lesson ID must be an integer"}

    def test_denied(self, client, service) -> None:
        """Test the 403 body for a locked course."""
        service.can_access_lesson.return_value = LessonAccessDecision(
            can_access=False,
            reason="You have already unlocked 1 course(s). Subscribe to access all courses.",
            unlocked_course_id="cs101",
        )

        response = client.get("/lesson", params={"subject_id": "bio", "lesson_id": "1", "course_id": "bio1"})

        assert response.status_code == 403
        body = response.json()
        assert body["unlocked_course_id"] == "cs101"
        assert body["requires_subscription"] is True

    def test_database_failure(self, client, service) -> None:
        """Test the 500 body when the database is unavailable."""
        service.can_access_lesson.side_effect = DatabaseError("Database not initialized")

        response = client.get("/subjects/math/lessons/1")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to check lesson access"}


class TestSubscriptionGates:
    """Tests for the boolean feature gates."""

    def test_meeting_allowed(self, client) -> None:
        """Test that an allowed gate lets the handler run."""
        response = client.post("/meetings/m-1/join")

        assert response.status_code == 200
        assert response.json() == {"joined": "m-1"}

    def test_meeting_denied(self, client, service) -> None:
        """Test the meeting denial body."""
        service.can_join_meeting.return_value = GateDecision(
            allowed=False, reason="Joining meetings requires an active subscription."
        )

        response = client.post("/meetings/m-1/join")

        assert response.status_code == 403
        assert response.json() == {
            "error": "Joining meetings requires an active subscription.",
            "requires_subscription": True,
        }

    def test_community_denied(self, client, service) -> None:
        """Test the community denial body."""
        service.can_access_community.return_value = GateDecision(allowed=False)

        response = client.get("/community")

        assert response.status_code == 403
        assert response.json() == {
            "error": "Community access denied",
            "requires_grade_12_plus": True,
            "requires_subscription": True,
        }

    def test_friend_request_failure(self, client, service) -> None:
        """Test the 500 body for a failed friend request check."""
        service.can_send_friend_request.side_effect = AccessControlError("boom")

        response = client.post("/friends")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to check friend request access"}

    def test_daily_challenge_denied(self, client, service) -> None:
        """Test the daily challenge denial body."""
        service.can_access_daily_challenge.return_value = GateDecision(
            allowed=False, reason="Daily challenges require an active subscription."
        )

        response = client.get("/challenge")

        assert response.status_code == 403
        assert response.json()["requires_subscription"] is True


class TestDownloadQuotaGate:
    """Tests for require_download_quota."""

    def test_allowed(self, client) -> None:
        """Test that remaining downloads reach the handler."""
        response = client.get("/products/p-1/download")

        assert response.status_code == 200
        assert response.json()["downloads_remaining"] == 2

    def test_exhausted(self, client, service) -> None:
        """Test the exhausted quota body."""
        service.can_download_product.return_value = DownloadDecision(
            can_download=False, downloads_remaining=0, reason="Limit reached."
        )

        response = client.get("/products/p-1/download")

        assert response.status_code == 403
        assert response.json() == {
            "error": "Limit reached.",
            "downloads_remaining": 0,
            "requires_subscription": True,
        }


class TestMessageContacts:
    """Tests for get_message_contacts."""

    def test_contacts(self, client) -> None:
        """Test the allowed categories."""
        response = client.get("/contacts")

        assert response.json() == {"contacts": ["admin"]}

    def test_failure(self, client, service) -> None:
        """Test the 500 body when contacts cannot be resolved."""
        service.get_allowed_message_contacts.side_effect = AccessControlError("boom")

        response = client.get("/contacts")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to check messaging access"}


class TestRequireAuth:
    """Tests for require_auth without an override."""

    def test_anonymous_request(self) -> None:
        """Test the 401 body and challenge header."""
        app = FastAPI()
        app.add_exception_handler(StarletteHTTPException, json_http_exception_handler)

        @app.get("/me")
        async def me(user: Annotated[CurrentUser, Depends(require_auth)]):
            return {"id": user.id}

        response = TestClient(app).get("/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}
        assert response.headers["WWW-Authenticate"] == "Bearer"
