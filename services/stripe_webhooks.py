"""
Stripe webhook event processing.

Events are claimed in Redis before they are handled so a redelivered event
is applied at most once. A handler failure rolls back the database work and
releases the claim, letting Stripe retry the delivery.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.redis import get_redis
from database.models import User, utcnow
from database.repositories import PaymentRepository, SubscriptionRepository, UserRepository
from services.credit_service import CreditService
from services.plans import get_plan, get_tier_for_price_id
from services.stripe_service import (
    StripeService,
    get_period_end,
    get_price_id,
    get_stripe_service,
)

logger = logging.getLogger(__name__)

EVENT_KEY = "stripe:event:{event_id}"
DEFAULT_PERIOD = timedelta(days=30)

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
INVOICE_PAID = "invoice.paid"
INVOICE_FAILED = "invoice.payment_failed"


def _from_timestamp(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _expiry_for(stripe_subscription: dict[str, Any]) -> datetime:
    """Period end of a subscription, or one billing period from now."""
    return _from_timestamp(get_period_end(stripe_subscription)) or utcnow() + DEFAULT_PERIOD


def _parse_user_id(value: str | None) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    """Subscription id of an invoice across API versions."""
    if invoice.get("subscription"):
        return invoice["subscription"]
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return details.get("subscription")


class StripeWebhookHandler:
    """Applies verified Stripe events to the local database."""

    def __init__(self, session: AsyncSession, stripe_service: StripeService | None = None):
        self.session = session
        self.stripe = stripe_service or get_stripe_service()
        self.users = UserRepository(session)
        self.subscriptions = SubscriptionRepository(session)
        self.payments = PaymentRepository(session)
        self.credits = CreditService(session)
        self._handlers = {
            CHECKOUT_COMPLETED: self.handle_checkout_completed,
            SUBSCRIPTION_CREATED: self.handle_subscription_change,
            SUBSCRIPTION_UPDATED: self.handle_subscription_change,
            SUBSCRIPTION_DELETED: self.handle_subscription_deleted,
            INVOICE_PAID: self.handle_invoice_paid,
            INVOICE_FAILED: self.handle_invoice_failed,
        }

    # ============ Idempotency ============

    async def claim_event(self, event_id: str) -> bool:
        """Mark an event as being processed; False if it was seen before."""
        redis = await get_redis()
        ttl = get_settings().stripe_event_ttl_seconds
        claimed = await redis.set(EVENT_KEY.format(event_id=event_id), "1", ex=ttl, nx=True)
        return bool(claimed)

    async def release_event(self, event_id: str) -> None:
        redis = await get_redis()
        await redis.delete(EVENT_KEY.format(event_id=event_id))

    # ============ Dispatch ============

    async def process(self, event: dict[str, Any]) -> dict[str, Any]:
        """
        Handle one verified event.

        Raises whatever the handler raised, after rolling back and
        releasing the event claim.
        """
        event_id = event["id"]
        event_type = event.get("type", "")

        if not await self.claim_event(event_id):
            logger.info(f"Skipping duplicate Stripe event {event_id} ({event_type})")
            return {"received": True, "duplicate": True}

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled Stripe event type: {event_type}")
            return {"received": True}

        logger.info(f"Processing Stripe event {event_id}: {event_type}")
        try:
            await handler(event["data"]["object"], event_type)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            await self.release_event(event_id)
            raise

        return {"received": True}

    # ============ Helpers ============

    async def _get_user(self, user_id: str | None) -> User | None:
        parsed = _parse_user_id(user_id)
        if parsed is None:
            logger.error(f"Missing or invalid user id in Stripe metadata: {user_id!r}")
            return None
        user = await self.users.get_by_id(parsed)
        if user is None:
            logger.error(f"Stripe event references unknown user {parsed}")
        return user

    # ============ Handlers ============

    async def handle_checkout_completed(self, checkout: dict[str, Any], event_type: str) -> None:
        """First payment: activate the plan and reset credits to its allotment."""
        metadata = checkout.get("metadata") or {}
        tier = metadata.get("subscription_tier")
        plan = get_plan(tier)
        if plan is None or tier == "free":
            logger.error(f"Invalid subscription tier in checkout {checkout.get('id')}: {tier}")
            return

        user = await self._get_user(metadata.get("supabase_user_id"))
        if user is None:
            return

        subscription_id = checkout.get("subscription")
        if not subscription_id:
            logger.warning(f"Checkout {checkout.get('id')} has no subscription, skipping")
            return

        stripe_subscription = await self.stripe.retrieve_subscription(subscription_id)
        expires_at = _expiry_for(stripe_subscription)
        auto_renew = not stripe_subscription.get("cancel_at_period_end", False)

        subscription = await self.subscriptions.get_by_stripe_id(stripe_subscription["id"])
        if subscription is None:
            subscription = await self.subscriptions.create(
                user_id=user.id,
                tier=tier,
                expires_at=expires_at,
                payment_provider="stripe",
                status="completed",
                price=plan.price,
                credits_per_month=plan.credits,
                images_per_month=plan.images,
                stripe_subscription_id=stripe_subscription["id"],
                stripe_price_id=get_price_id(stripe_subscription),
                auto_renew=auto_renew,
            )
        else:
            await self.subscriptions.update(
                subscription,
                tier=tier,
                status="completed",
                expires_at=expires_at,
                auto_renew=auto_renew,
            )

        await self.users.update(
            user,
            subscription_tier=tier,
            subscription_expires_at=expires_at,
            stripe_customer_id=checkout.get("customer") or user.stripe_customer_id,
        )
        await self.credits.set_credits(
            user.id,
            plan.credits,
            "subscription",
            description=f"{plan.name} subscription via Stripe",
            related_id=subscription.id,
        )
        await self.payments.record(
            user_id=user.id,
            payment_provider="stripe",
            amount=plan.price,
            status="completed",
            currency=checkout.get("currency") or "usd",
            subscription_id=subscription.id,
            stripe_session_id=checkout.get("id"),
            stripe_payment_intent_id=checkout.get("payment_intent"),
        )

        logger.info(f"Activated {tier} subscription for user {user.id}")

    async def handle_subscription_change(
        self, stripe_subscription: dict[str, Any], event_type: str
    ) -> None:
        """Sync a created/updated Stripe subscription to the local record."""
        metadata = stripe_subscription.get("metadata") or {}
        user = await self._get_user(metadata.get("supabase_user_id"))
        if user is None:
            return

        price_id = get_price_id(stripe_subscription)
        tier = get_tier_for_price_id(price_id) or metadata.get("subscription_tier")
        plan = get_plan(tier)
        if plan is None or tier == "free":
            logger.error(f"Unknown price id on subscription {stripe_subscription['id']}: {price_id}")
            return

        is_active = stripe_subscription.get("status") == "active"
        expires_at = _expiry_for(stripe_subscription)
        fields = {
            "tier": tier,
            "price": plan.price,
            "credits_per_month": plan.credits,
            "images_per_month": plan.images,
            "expires_at": expires_at,
            "auto_renew": not stripe_subscription.get("cancel_at_period_end", False),
            "status": "completed" if is_active else "pending",
        }

        subscription = await self.subscriptions.get_by_stripe_id(stripe_subscription["id"])
        if subscription is not None:
            await self.subscriptions.update(subscription, **fields)
        elif event_type == SUBSCRIPTION_CREATED:
            await self.subscriptions.create(
                user_id=user.id,
                payment_provider="stripe",
                stripe_subscription_id=stripe_subscription["id"],
                stripe_price_id=price_id,
                purchased_at=_from_timestamp(stripe_subscription.get("created")),
                **fields,
            )

        if is_active:
            await self.users.set_subscription(user, tier, expires_at)

        logger.info(f"Synced {event_type} for user {user.id}: tier={tier}, active={is_active}")

    async def handle_subscription_deleted(
        self, stripe_subscription: dict[str, Any], event_type: str
    ) -> None:
        """Mark the subscription cancelled; downgrade once the period is over."""
        metadata = stripe_subscription.get("metadata") or {}
        user = await self._get_user(metadata.get("supabase_user_id"))
        if user is None:
            return

        subscription = await self.subscriptions.get_by_stripe_id(stripe_subscription["id"])
        if subscription is not None:
            await self.subscriptions.update(subscription, status="cancelled", auto_renew=False)

        period_end = _from_timestamp(get_period_end(stripe_subscription))
        if period_end is None or utcnow() >= period_end:
            await self.users.set_subscription(user, "free", None)
            logger.info(f"User {user.id} reverted to free tier")

    async def handle_invoice_paid(self, invoice: dict[str, Any], event_type: str) -> None:
        """Renewal payment: add the plan's credits and extend the expiry."""
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info(f"Invoice {invoice.get('id')} not related to a subscription, skipping")
            return

        # The first invoice's credits were granted by checkout.session.completed
        if invoice.get("billing_reason") == "subscription_create":
            logger.info(f"Skipping initial invoice {invoice.get('id')}")
            return

        stripe_subscription = await self.stripe.retrieve_subscription(subscription_id)
        user = await self._get_user((stripe_subscription.get("metadata") or {}).get("supabase_user_id"))
        if user is None:
            return

        subscription = await self.subscriptions.get_by_stripe_id(subscription_id)
        if subscription is None:
            logger.info(f"Subscription {subscription_id} not found, skipping invoice")
            return

        plan = get_plan(subscription.tier)
        if plan is None:
            logger.error(f"Subscription {subscription.id} has unknown tier {subscription.tier}")
            return

        expires_at = _expiry_for(stripe_subscription)
        await self.credits.add_credits(
            user.id,
            plan.credits,
            "subscription",
            description=f"{plan.name} subscription renewal via Stripe",
            related_id=subscription.id,
        )
        await self.users.update(user, subscription_expires_at=expires_at)
        await self.subscriptions.update(subscription, expires_at=expires_at)
        await self.payments.record(
            user_id=user.id,
            payment_provider="stripe",
            amount=(invoice.get("amount_paid") or 0) / 100,
            status="completed",
            currency=invoice.get("currency") or "usd",
            subscription_id=subscription.id,
            stripe_payment_intent_id=invoice.get("payment_intent"),
        )

        logger.info(f"Renewed {plan.tier} subscription for user {user.id}")

    async def handle_invoice_failed(self, invoice: dict[str, Any], event_type: str) -> None:
        """Record a failed renewal payment."""
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info(f"Invoice {invoice.get('id')} not related to a subscription, skipping")
            return

        stripe_subscription = await self.stripe.retrieve_subscription(subscription_id)
        user = await self._get_user((stripe_subscription.get("metadata") or {}).get("supabase_user_id"))
        if user is None:
            return

        subscription = await self.subscriptions.get_by_stripe_id(subscription_id)
        await self.payments.record(
            user_id=user.id,
            payment_provider="stripe",
            amount=(invoice.get("amount_due") or 0) / 100,
            status="failed",
            currency=invoice.get("currency") or "usd",
            subscription_id=subscription.id if subscription else None,
            stripe_payment_intent_id=invoice.get("payment_intent"),
        )

        logger.warning(f"Payment failed for user {user.id} (invoice {invoice.get('id')})")
