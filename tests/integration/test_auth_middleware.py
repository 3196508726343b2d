# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the authentication middleware.

Tests the middleware components in isolation from database.
"""

from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import SecretStr

from edugate.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from edugate.api.middleware.rate_limit import get_client_identifier
from edugate.domains.auth.jwt import JWTManager, TokenPayload


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def client(jwt_manager: JWTManager) -> TestClient:
    """App echoing the authenticated user."""
    app = FastAPI()
    app.add_middleware(AuthMiddleware, jwt_manager=jwt_manager)

    @app.get("/api/v1/test")
    async def test_endpoint(request: Request) -> dict:
        user = get_current_user(request)
        return {
            "user_id": user.id if user else None,
            "role": user.role if user else None,
            "client": get_client_identifier(request),
        }

    @app.get("/health")
    async def health(request: Request) -> dict:
        return {"user": get_current_user(request)}

    return TestClient(app)


class TestAuthMiddleware:
    """Tests for AuthMiddleware."""

    def test_public_path_bypasses_auth(self, client: TestClient) -> None:
        """Test that public paths don't require authentication."""
        response = client.get("/health", headers={"Authorization": "Bearer whatever"})

        assert response.status_code == 200
        assert response.json() == {"user": None}

    def test_valid_token_sets_user(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test that valid token sets request.state.user."""
        user_id = str(uuid4())
        token = jwt_manager.create_access_token(user_id=user_id, role="teacher")

        response = client.get(
            "/api/v1/test",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert response.json()["user_id"] == user_id
        assert response.json()["role"] == "teacher"
        assert response.json()["client"] == f"user:{user_id}"

    def test_no_token_sets_user_none(self, client: TestClient) -> None:
        """Test that missing token sets request.state.user to None."""
        response = client.get("/api/v1/test")

        assert response.status_code == 200
        assert response.json()["user_id"] is None
        assert response.json()["client"].startswith("ip:")

    def test_invalid_token_sets_user_none(self, client: TestClient) -> None:
        """Test that invalid token sets request.state.user to None."""
        response = client.get(
            "/api/v1/test",
            headers={"Authorization": "Bearer invalid-token"},
        )

        assert response.status_code == 200
        assert response.json()["user_id"] is None

    def test_expired_token_sets_user_none(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test that expired tokens are treated as anonymous."""
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()),
            expires_delta=timedelta(seconds=-5),
        )

        response = client.get(
            "/api/v1/test",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.json()["user_id"] is None

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b"])
    def test_malformed_header(self, client: TestClient, header: str) -> None:
        """Test that non-bearer headers are ignored."""
        response = client.get("/api/v1/test", headers={"Authorization": header})

        assert response.status_code == 200
        assert response.json()["user_id"] is None


class TestCurrentUser:
    """Tests for CurrentUser class."""

    def test_from_payload(self) -> None:
        """Test building the user from token claims."""
        payload = TokenPayload(sub="user-1", role="admin", exp=2, iat=1)

        user = CurrentUser.from_payload(payload)

        assert user.id == "user-1"
        assert user.is_admin is True

    def test_default_role(self) -> None:
        """Test the student default."""
        user = CurrentUser("user-2")

        assert user.role == "student"
        assert user.is_admin is False
        assert repr(user) == "<CurrentUser(id=user-2, role=student)>"
