"""
User repository for account lookups and profile updates.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import User, utcnow


class UserRepository:
    """Repository for User model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_apple_id(self, apple_id: str) -> User | None:
        """Get user by Apple subject (also used for dev accounts)."""
        result = await self.session.execute(select(User).where(User.apple_id == apple_id))
        return result.scalar_one_or_none()

    async def get_by_google_id_or_email(
        self,
        google_id: str | None,
        email: str | None,
    ) -> User | None:
        """Get user by Google subject, falling back to email."""
        conditions = []
        if google_id:
            conditions.append(User.google_id == google_id)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return None

        query = select(User).where(or_(*conditions)).order_by(User.created_at).limit(1)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        apple_id: str | None = None,
        google_id: str | None = None,
        email: str | None = None,
        display_name: str | None = None,
        avatar_url: str | None = None,
        credits: int = 0,
        free_attempts: int = 0,
        subscription_tier: str = "free",
        language_code: str = "en",
        stripe_customer_id: str | None = None,
    ) -> User:
        """Create a new user."""
        user = User(
            apple_id=apple_id,
            google_id=google_id,
            email=email,
            display_name=display_name,
            avatar_url=avatar_url,
            credits=credits,
            free_attempts=free_attempts,
            subscription_tier=subscription_tier,
            language_code=language_code,
            stripe_customer_id=stripe_customer_id,
            last_login_at=utcnow(),
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def update(self, user: User, **fields) -> User:
        """Set the given attributes and flush."""
        for key, value in fields.items():
            setattr(user, key, value)
        await self.session.flush()
        return user

    async def update_last_login(self, user: User) -> User:
        """Update user's last login time."""
        user.last_login_at = utcnow()
        await self.session.flush()
        return user

    async def set_subscription(
        self,
        user: User,
        tier: str,
        expires_at: datetime | None,
    ) -> User:
        """Update the denormalized subscription state."""
        user.subscription_tier = tier
        user.subscription_expires_at = expires_at
        await self.session.flush()
        return user

    async def refresh(self, user: User) -> User:
        """Reload a user after a bulk UPDATE touched its row."""
        await self.session.refresh(user)
        return user
