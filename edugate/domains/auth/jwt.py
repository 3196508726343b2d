# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT access token handling.

Tokens are issued by the platform's identity service; this module validates
them using python-jose and can mint tokens for local development and tests.

Example:
    >>> from edugate.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id="user-123")
    >>> claims = jwt_manager.decode_token(token)
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from edugate.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT access token claims.

    Attributes:
        sub: Subject (user ID).
        type: Token type.
        role: Platform role of the user (student, teacher, admin).
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    type: Literal["access"] = "access"
    role: str = "student"
    exp: int
    iat: int
    jti: str | None = None


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT access token creation and validation.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    def create_access_token(
        self,
        user_id: str,
        role: str = "student",
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: User identifier.
            role: Platform role.
            expires_delta: Lifetime override. Defaults to the configured
                access token lifetime.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        lifetime = expires_delta or timedelta(
            minutes=self._settings.access_token_expire_minutes
        )

        payload = {
            "sub": str(user_id),
            "type": "access",
            "role": role,
            "exp": int((now + lifetime).timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate an access token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is malformed, badly signed or
                not an access token.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}") from e

        token_type = payload.get("type", "access")
        if token_type != "access":
            raise InvalidTokenError(f"Expected access token, got {token_type}")

        try:
            return TokenPayload.model_validate(
                {**payload, "type": token_type, "role": payload.get("role") or "student"}
            )
        except ValidationError as e:
            raise InvalidTokenError(f"Invalid token claims: {e}") from e

    def verify_token(self, token: str) -> bool:
        """Check whether a token is a valid, unexpired access token."""
        try:
            self.decode_token(token)
            return True
        except JWTError:
            return False
