"""
Central authentication module.

Validates the HS256 session token issued at login and resolves it to the
database user for protected endpoints.
"""

import logging
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session
from database.models import User
from database.repositories import UserRepository

from .exceptions import AuthenticationError
from .security import extract_token_from_header, verify_token

logger = logging.getLogger(__name__)


def get_user_id_from_header(authorization: str | None) -> UUID | None:
    """
    Resolve the user id from an Authorization header.

    Returns None if the header is missing, malformed, or the token is invalid.
    """
    token = extract_token_from_header(authorization)
    if not token:
        return None

    try:
        payload = verify_token(token)
        return UUID(str(payload["userId"]))
    except (AuthenticationError, ValueError) as e:
        logger.warning("JWT verification failed: %s", e)
        return None


# ============ FastAPI Dependencies ============


async def get_current_user(
    authorization: str | None = Header(None),
    session: AsyncSession = Depends(get_session),
) -> User | None:
    """
    Get current user from JWT token in Authorization header.

    Returns None if not authenticated (allows unauthenticated access).
    """
    user_id = get_user_id_from_header(authorization)
    if user_id is None:
        return None
    return await UserRepository(session).get_by_id(user_id)


async def require_current_user(
    authorization: str | None = Header(None),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    Require authenticated user.

    Raises 401 if not authenticated or the user no longer exists.
    """
    if not extract_token_from_header(authorization):
        raise AuthenticationError(message="Authentication required")

    user = await get_current_user(authorization, session)
    if not user:
        raise AuthenticationError(message="Invalid or expired token")
    return user
