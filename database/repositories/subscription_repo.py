"""
Subscription repository for Stripe and Apple subscription records.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Subscription, utcnow


class SubscriptionRepository:
    """Repository for Subscription model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, subscription_id: UUID) -> Subscription | None:
        """Get subscription by ID."""
        result = await self.session.execute(
            select(Subscription).where(Subscription.id == subscription_id)
        )
        return result.scalar_one_or_none()

    async def get_by_stripe_id(self, stripe_subscription_id: str) -> Subscription | None:
        """Get subscription by Stripe subscription ID."""
        result = await self.session.execute(
            select(Subscription).where(
                Subscription.stripe_subscription_id == stripe_subscription_id
            )
        )
        return result.scalar_one_or_none()

    async def get_by_apple_transaction_id(self, transaction_id: str) -> Subscription | None:
        """Get subscription by App Store transaction ID."""
        result = await self.session.execute(
            select(Subscription).where(Subscription.apple_transaction_id == transaction_id)
        )
        return result.scalar_one_or_none()

    async def get_active(
        self,
        user_id: UUID,
        payment_provider: str | None = None,
    ) -> Subscription | None:
        """Latest completed subscription that has not expired yet."""
        query = select(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.status == "completed",
            Subscription.expires_at > utcnow(),
        )

        if payment_provider:
            query = query.where(Subscription.payment_provider == payment_provider)

        query = query.order_by(desc(Subscription.created_at)).limit(1)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self,
        user_id: UUID,
        tier: str,
        expires_at: datetime,
        payment_provider: str,
        status: str = "completed",
        price: Decimal | float = 0,
        credits_per_month: int = 0,
        images_per_month: int = 0,
        stripe_subscription_id: str | None = None,
        stripe_price_id: str | None = None,
        apple_transaction_id: str | None = None,
        auto_renew: bool = True,
        purchased_at: datetime | None = None,
    ) -> Subscription:
        """Create a new subscription record."""
        subscription = Subscription(
            user_id=user_id,
            tier=tier,
            expires_at=expires_at,
            payment_provider=payment_provider,
            status=status,
            price=Decimal(str(price)),
            credits_per_month=credits_per_month,
            images_per_month=images_per_month,
            stripe_subscription_id=stripe_subscription_id,
            stripe_price_id=stripe_price_id,
            apple_transaction_id=apple_transaction_id,
            auto_renew=auto_renew,
            purchased_at=purchased_at or utcnow(),
        )
        self.session.add(subscription)
        await self.session.flush()
        return subscription

    async def update(self, subscription: Subscription, **fields) -> Subscription:
        """Set the given attributes and flush."""
        for key, value in fields.items():
            setattr(subscription, key, value)
        await self.session.flush()
        return subscription
