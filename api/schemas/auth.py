"""
Authentication-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """Public view of a user account."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    credits: int = 0
    free_attempts: int = 0
    subscription_tier: str = "free"
    subscription_expires_at: Optional[datetime] = None
    language_code: str = "en"
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class AppleUserInfo(BaseModel):
    """Profile details Apple only sends on the first sign-in."""

    email: Optional[str] = None
    display_name: Optional[str] = None


class AppleLoginRequest(BaseModel):
    """Sign in with Apple request."""

    apple_id_token: Optional[str] = Field(None, description="Apple identity token (JWT)")
    user_info: Optional[AppleUserInfo] = None


class GoogleLoginRequest(BaseModel):
    """Google Identity Services sign-in request."""

    credential: Optional[str] = Field(None, description="Google ID token credential")
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None


class DevLoginRequest(BaseModel):
    """Development login request."""

    email: str = "test@example.com"
    name: str = "Test User"


class AuthResponse(BaseModel):
    """Response for a successful login."""

    success: bool = True
    token: str
    user: UserProfile


class GoogleAuthResponse(AuthResponse):
    """Google login response with the new-account flag."""

    is_new_user: bool = Field(False, serialization_alias="isNewUser")


class DevAuthResponse(AuthResponse):
    """Development login response."""

    message: str = "Development login successful"


class UserResponse(BaseModel):
    """Wrapper for a single user profile."""

    success: bool = True
    user: UserProfile
