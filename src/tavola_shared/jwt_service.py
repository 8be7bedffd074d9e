"""
JWT Service - access token validation for the admin back office.

Admin tokens are issued by the hosted auth provider (Supabase) and signed with
HS256 using the project's JWT secret; this service only mints tokens for local
tooling and tests.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Request, current_app

from tavola_shared.constants import Roles
from tavola_shared.error_catalog import AuthorizationError

JWT_ALGORITHM = "HS256"


class JWTError(Exception):
    """Base exception for JWT errors."""

    def __init__(self, message: str, status: int = 401):
        self.message = message
        self.status = status
        super().__init__(message)


class TokenExpiredError(JWTError):
    """Token has expired."""

    def __init__(self):
        super().__init__("Token expired", 401)


class InvalidTokenError(JWTError):
    """Token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, 401)


def get_jwt_secret() -> str:
    """Get JWT secret key from config or environment."""
    try:
        secret = current_app.config.get("JWT_SECRET") or current_app.config.get("SECRET_KEY")
        if secret:
            return secret
    except RuntimeError:
        pass

    secret = os.getenv("SUPABASE_JWT_SECRET") or os.getenv("SECRET_KEY")
    if not secret:
        raise RuntimeError("SUPABASE_JWT_SECRET or SECRET_KEY must be configured")
    return secret


def create_access_token(
    subject: str,
    role: str = Roles.AUTHENTICATED.value,
    email: str | None = None,
    expires_hours: int = 1,
) -> str:
    """
    Create a signed access token shaped like the auth provider's tokens.

    Args:
        subject: User id placed in ``sub``
        role: Role claim (authenticated, admin or service_role for admins)
        email: Optional email claim
        expires_hours: Token lifetime

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "role": role,
        "email": email,
        "aud": "authenticated",
        "iat": now,
        "exp": now + timedelta(hours=expires_hours),
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid
    """
    try:
        return jwt.decode(
            token,
            get_jwt_secret(),
            algorithms=[JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e))


def extract_token_from_request(request: Request) -> str | None:
    """
    Extract JWT token from request.

    Checks the Authorization header (Bearer token) first, then the
    ``access_token`` cookie.
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    return request.cookies.get("access_token")


def is_admin_principal(principal: dict[str, Any] | None) -> bool:
    """Any signed-in back-office user with a subject counts as admin."""
    if not principal:
        return False
    return bool(principal.get("sub")) and Roles.is_admin(principal.get("role"))


def require_admin(principal: dict[str, Any] | None) -> None:
    if not is_admin_principal(principal):
        raise AuthorizationError()
