"""
Authentication router for Apple, Google and development logins.

Endpoints:
- POST /api/auth/apple - Sign in with Apple
- POST /api/auth/google - Sign in with Google
- POST /api/auth/dev - Development login (disabled in production)
- GET /api/auth/me - Get current user info
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_auth_service
from api.schemas.auth import (
    AppleLoginRequest,
    AuthResponse,
    DevAuthResponse,
    DevLoginRequest,
    GoogleAuthResponse,
    GoogleLoginRequest,
    UserProfile,
    UserResponse,
)
from core.auth import require_current_user
from database.models import User
from services import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/apple", response_model=AuthResponse)
async def apple_login(
    request: AppleLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Sign in with an Apple identity token.

    New accounts start with 40 credits and 10 free attempts.
    """
    user_info = request.user_info.model_dump() if request.user_info else None
    result = await auth_service.login_with_apple(request.apple_id_token, user_info)

    logger.info(f"Apple login for user {result.user.id} (new={result.is_new_user})")
    return AuthResponse(
        token=result.token,
        user=UserProfile.model_validate(result.user),
    )


@router.post("/google", response_model=GoogleAuthResponse)
async def google_login(
    request: GoogleLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Sign in with a Google Identity Services credential."""
    result = await auth_service.login_with_google(
        request.credential,
        name=request.name,
        email=request.email,
        picture=request.picture,
    )

    logger.info(f"Google login for user {result.user.id} (new={result.is_new_user})")
    return GoogleAuthResponse(
        token=result.token,
        user=UserProfile.model_validate(result.user),
        is_new_user=result.is_new_user,
    )


@router.post("/dev", response_model=DevAuthResponse)
async def dev_login(
    request: DevLoginRequest | None = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Development login with a pro test account."""
    request = request or DevLoginRequest()
    result = await auth_service.login_dev(email=request.email, name=request.name)

    return DevAuthResponse(
        token=result.token,
        user=UserProfile.model_validate(result.user),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(require_current_user)):
    """Get the authenticated user's profile."""
    return UserResponse(user=UserProfile.model_validate(user))
