"""
Auth utilities for the Hermes API.

Validates bearer JWTs and extracts user_id from request context.
Falls back to X-User-Id header for service-to-service calls and tests.
"""
from fastapi import Header, Request
from typing import Optional
import jwt
import logging

from hermes.core.config import settings
from hermes.core.errors import UnauthorizedError
from hermes.features.users.service import get_or_create_user

logger = logging.getLogger(__name__)


def verify_jwt(token: str) -> Optional[str]:
    """
    Verify a bearer JWT and extract user_id.

    Args:
        token: JWT from Authorization header (Bearer {token})

    Returns:
        user_id from the 'sub' claim, or None when no secret is configured

    Raises:
        UnauthorizedError: Invalid or expired token
    """
    if not settings.AUTH_JWT_SECRET:
        logger.debug("No AUTH_JWT_SECRET configured, skipping JWT validation")
        return None

    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=settings.jwt_algorithms,
            options={"verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise UnauthorizedError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Token has no subject")
    return user_id


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Service/test user ID"),
) -> str:
    """
    Extract current user ID from request context.

    Priority:
    1. JWT from Authorization header
    2. X-User-Id header
    3. Raise 401 Unauthorized

    After successful auth, the user is upserted into app_users.
    """
    user_id = None

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        user_id = verify_jwt(auth_header[7:])

    if not user_id and x_user_id:
        user_id = x_user_id.strip() or None

    if not user_id:
        raise UnauthorizedError("Missing Authorization (Bearer JWT) or X-User-Id header")

    get_or_create_user(user_id)
    request.state.user_id = user_id
    return user_id
