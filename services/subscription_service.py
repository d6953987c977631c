"""
App Store subscription purchases and subscription status.

Receipts are stored but not verified against Apple's servers.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import BadRequestError, DuplicateTransactionError
from database.models import Subscription, User, ensure_aware, utcnow
from database.repositories import PaymentRepository, SubscriptionRepository, UserRepository
from services.credit_service import CreditService
from services.plans import APPLE_PRODUCT_PREFIX, get_paid_plans, get_plan, get_plan_by_product_id

logger = logging.getLogger(__name__)

APPLE_SUBSCRIPTION_PERIOD = timedelta(days=30)


@dataclass
class PurchaseResult:
    subscription: Subscription
    credits_added: int
    new_balance: int


class SubscriptionService:
    """Apple IAP activation and subscription state for one DB session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.subscriptions = SubscriptionRepository(session)
        self.payments = PaymentRepository(session)
        self.credits = CreditService(session)

    async def purchase_apple(
        self,
        user: User,
        tier: str | None,
        receipt_data: str | None,
        transaction_id: str | None,
    ) -> PurchaseResult:
        """
        Activate a plan bought through the App Store.

        Everything happens in the caller's transaction, so a failure at any
        step leaves no partial subscription behind.

        Raises:
            BadRequestError: missing fields or unknown tier
            DuplicateTransactionError: transaction id seen before
        """
        if not tier or not receipt_data or not transaction_id:
            raise BadRequestError(message="Missing required fields")

        plan = get_plan_by_product_id(f"{APPLE_PRODUCT_PREFIX}{tier}")
        if plan is None:
            raise BadRequestError(message="Invalid subscription tier")

        if await self.subscriptions.get_by_apple_transaction_id(transaction_id):
            logger.warning(f"Duplicate Apple transaction {transaction_id} for user {user.id}")
            raise DuplicateTransactionError(message="Transaction already processed")

        expires_at = utcnow() + APPLE_SUBSCRIPTION_PERIOD
        subscription = await self.subscriptions.create(
            user_id=user.id,
            tier=plan.tier,
            expires_at=expires_at,
            payment_provider="apple",
            status="completed",
            price=plan.price,
            credits_per_month=plan.credits,
            images_per_month=plan.images,
            apple_transaction_id=transaction_id,
            auto_renew=True,
        )
        await self.users.set_subscription(user, plan.tier, expires_at)

        new_balance = await self.credits.add_credits(
            user.id,
            plan.credits,
            "subscription",
            description=f"{plan.name} subscription activated",
            related_id=subscription.id,
        )
        await self.payments.record(
            user_id=user.id,
            payment_provider="apple",
            amount=plan.price,
            status="completed",
            currency="USD",
            subscription_id=subscription.id,
            apple_transaction_id=transaction_id,
            receipt_data=receipt_data,
        )

        logger.info(f"Activated Apple {plan.tier} subscription for user {user.id}")
        return PurchaseResult(
            subscription=subscription,
            credits_added=plan.credits,
            new_balance=new_balance,
        )

    async def expire_if_needed(self, user: User) -> User:
        """Downgrade a paid tier whose expiry has passed."""
        expires_at = ensure_aware(user.subscription_expires_at)
        if user.subscription_tier != "free" and expires_at and expires_at <= utcnow():
            logger.info(f"Subscription of user {user.id} expired, reverting to free")
            await self.users.set_subscription(user, "free", None)
        return user

    async def get_status(self, user: User) -> dict[str, Any]:
        """Tier, balance, plan details and the active subscription."""
        await self.expire_if_needed(user)
        await self.users.refresh(user)
        active = await self.subscriptions.get_active(user.id)
        plan = get_plan(user.subscription_tier)

        return {
            "subscription_tier": user.subscription_tier,
            "subscription_expires_at": user.subscription_expires_at,
            "current_credits": user.credits,
            "free_attempts": user.free_attempts,
            "plan_details": plan.to_dict() if plan else None,
            "active_subscription": active,
            "available_plans": [p.to_dict() for p in get_paid_plans()],
        }
