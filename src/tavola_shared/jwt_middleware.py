"""
JWT Middleware for Flask.

Provides request-level JWT validation and admin principal injection.
"""

from __future__ import annotations

import logging
from functools import wraps
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from flask import g, jsonify, request

from tavola_shared.jwt_service import (
    InvalidTokenError,
    TokenExpiredError,
    decode_token,
    extract_token_from_request,
    is_admin_principal,
)
from tavola_shared.serializers import error_response

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)


def init_jwt_middleware(app: Flask) -> None:
    """
    Initialize JWT middleware for a Flask app.

    Sets up a before_request handler that validates the bearer token (if any)
    and stores its payload in ``g.current_user``.
    """

    @app.before_request
    def load_jwt_user():
        g.current_user = None

        token = extract_token_from_request(request)
        if not token:
            return

        try:
            g.current_user = decode_token(token)
        except TokenExpiredError:
            logger.debug("Expired token on %s", request.path)
        except InvalidTokenError as e:
            logger.warning("Invalid token on %s: %s", request.path, e)


def get_current_user() -> dict[str, Any] | None:
    """
    Get current authenticated user from request context.

    Returns:
        User payload dict if authenticated, None otherwise
    """
    return getattr(g, "current_user", None)


def admin_required(f):
    """Decorator to require an authenticated admin principal."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_admin_principal(get_current_user()):
            return jsonify(
                error_response("Unauthorized", code="UNAUTHORIZED")
            ), HTTPStatus.UNAUTHORIZED
        return f(*args, **kwargs)

    return decorated_function
