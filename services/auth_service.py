"""
Account provisioning for Sign in with Apple, Google and development logins.

Each login resolves (or creates) the database user, stamps last_login_at
and issues the HS256 session token used by every protected endpoint.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.exceptions import AuthenticationError, AuthorizationError, BadRequestError
from core.security import create_user_token, decode_apple_id_token, decode_google_credential
from database.models import User
from database.repositories import CreditRepository, UserRepository

logger = logging.getLogger(__name__)

# Starting balances per sign-in method
APPLE_INITIAL_CREDITS = 40
APPLE_INITIAL_FREE_ATTEMPTS = 10
GOOGLE_INITIAL_CREDITS = 10
GOOGLE_INITIAL_FREE_ATTEMPTS = 10
DEV_INITIAL_CREDITS = 100
DEV_INITIAL_FREE_ATTEMPTS = 100
DEV_TIER = "pro"


@dataclass
class LoginResult:
    """Authenticated user plus the issued session token."""

    user: User
    token: str
    is_new_user: bool = False


def _issue_token(user: User) -> str:
    return create_user_token(
        user_id=str(user.id),
        apple_id=user.apple_id or user.google_id,
        email=user.email,
    )


class AuthService:
    """Login flows bound to one database session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.credits = CreditRepository(session)

    async def login_with_apple(
        self,
        apple_id_token: str | None,
        user_info: dict[str, Any] | None = None,
    ) -> LoginResult:
        """
        Sign in with an Apple identity token.

        Raises:
            BadRequestError: no token supplied
            AuthenticationError: token unreadable, expired or without subject
        """
        if not apple_id_token:
            raise BadRequestError(message="Apple ID token is required")

        claims = decode_apple_id_token(apple_id_token)
        apple_id = claims["sub"]
        user_info = user_info or {}
        email = user_info.get("email") or claims.get("email")
        display_name = user_info.get("display_name")

        user = await self.users.get_by_apple_id(apple_id)
        if user is None:
            user = await self.users.create(
                apple_id=apple_id,
                email=email,
                display_name=display_name,
                credits=APPLE_INITIAL_CREDITS,
                free_attempts=APPLE_INITIAL_FREE_ATTEMPTS,
            )
            await self.credits.record_transaction(
                user_id=user.id,
                amount=APPLE_INITIAL_CREDITS,
                balance_after=APPLE_INITIAL_CREDITS,
                transaction_type="initial",
                description="Welcome bonus credits",
            )
            logger.info(f"Created Apple user {user.id}")
            return LoginResult(user=user, token=_issue_token(user), is_new_user=True)

        updates: dict[str, Any] = {}
        if email and not user.email:
            updates["email"] = email
        if display_name and not user.display_name:
            updates["display_name"] = display_name
        if updates:
            await self.users.update(user, **updates)
        await self.users.update_last_login(user)

        return LoginResult(user=user, token=_issue_token(user))

    async def login_with_google(
        self,
        credential: str | None,
        name: str | None = None,
        email: str | None = None,
        picture: str | None = None,
    ) -> LoginResult:
        """
        Sign in with a Google Identity Services credential.

        The account is matched by Google subject or email.
        """
        if not credential:
            raise BadRequestError(message="Google credential is required")

        claims = decode_google_credential(credential)
        email = email or claims.get("email")
        name = name or claims.get("name")
        picture = picture or claims.get("picture")
        google_id = claims.get("sub") or email

        if not google_id:
            raise AuthenticationError(message="Google credential carries no identity")

        user = await self.users.get_by_google_id_or_email(google_id, email)
        if user is None:
            user = await self.users.create(
                google_id=google_id,
                email=email,
                display_name=name,
                avatar_url=picture,
                credits=GOOGLE_INITIAL_CREDITS,
                free_attempts=GOOGLE_INITIAL_FREE_ATTEMPTS,
            )
            logger.info(f"Created Google user {user.id}")
            return LoginResult(user=user, token=_issue_token(user), is_new_user=True)

        await self.users.update(
            user,
            google_id=user.google_id or google_id,
            display_name=name or user.display_name,
            avatar_url=picture or user.avatar_url,
        )
        await self.users.update_last_login(user)

        return LoginResult(user=user, token=_issue_token(user))

    async def login_dev(
        self,
        email: str = "test@example.com",
        name: str = "Test User",
    ) -> LoginResult:
        """
        Development login with a generous pro account.

        Raises:
            AuthorizationError: called in production
        """
        if get_settings().is_production:
            raise AuthorizationError(message="This endpoint is only available in development")

        apple_id = f"dev_{email}"
        user = await self.users.get_by_apple_id(apple_id)
        if user is None:
            user = await self.users.create(
                apple_id=apple_id,
                email=email,
                display_name=name,
                credits=DEV_INITIAL_CREDITS,
                free_attempts=DEV_INITIAL_FREE_ATTEMPTS,
                subscription_tier=DEV_TIER,
            )
            logger.info(f"Created dev user {user.id} ({email})")
            return LoginResult(user=user, token=_issue_token(user), is_new_user=True)

        await self.users.update_last_login(user)
        return LoginResult(user=user, token=_issue_token(user))
