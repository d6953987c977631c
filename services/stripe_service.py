"""
Stripe API adapter.

Thin async wrapper over the blocking stripe SDK. Every call runs in the
default executor and returns plain dicts so callers never depend on the
SDK's object model.
"""

import asyncio
import functools
import json
import logging
from typing import Any

import stripe

from core.config import get_settings
from core.exceptions import BadRequestError, ConfigurationError

logger = logging.getLogger(__name__)

PAYMENT_METHOD_TYPES = ["card"]
BILLING_ADDRESS_COLLECTION = "auto"


def to_plain_dict(obj: Any) -> dict[str, Any]:
    """Convert a stripe object (or dict) into a plain dict."""
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, dict):
        return obj
    return dict(obj)


def get_period_end(subscription: dict[str, Any]) -> int | None:
    """
    Current period end (unix seconds) of a subscription.

    Newer API versions carry it on the subscription items instead.
    """
    period_end = subscription.get("current_period_end")
    if period_end:
        return int(period_end)

    items = (subscription.get("items") or {}).get("data") or []
    if items and items[0].get("current_period_end"):
        return int(items[0]["current_period_end"])
    return None


def get_price_id(subscription: dict[str, Any]) -> str | None:
    """Price id of the first subscription item."""
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


class StripeService:
    """Async Stripe calls used by checkout, management and webhooks."""

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        settings = get_settings()
        self.api_key = api_key or settings.stripe_secret_key
        self.webhook_secret = webhook_secret or settings.stripe_webhook_secret

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _call(self, func, *args, **kwargs) -> dict[str, Any]:
        if not self.api_key:
            raise ConfigurationError(message="Stripe is not configured")

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None, functools.partial(func, *args, api_key=self.api_key, **kwargs)
        )
        return to_plain_dict(result)

    # ============ Customers & Checkout ============

    async def create_customer(self, email: str | None, user_id: str) -> str:
        """Create a customer tagged with the application user id."""
        customer = await self._call(
            stripe.Customer.create,
            email=email or None,
            metadata={"supabase_user_id": user_id, "platform": "web"},
        )
        logger.info(f"Created Stripe customer {customer['id']} for user {user_id}")
        return customer["id"]

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        user_id: str,
        tier: str,
        credits: int,
        images: int,
        success_url: str,
        cancel_url: str,
    ) -> dict[str, Any]:
        """Create a subscription-mode Checkout Session."""
        return await self._call(
            stripe.checkout.Session.create,
            customer=customer_id,
            payment_method_types=PAYMENT_METHOD_TYPES,
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url,
            billing_address_collection=BILLING_ADDRESS_COLLECTION,
            allow_promotion_codes=True,
            subscription_data={
                "metadata": {
                    "supabase_user_id": user_id,
                    "subscription_tier": tier,
                    "credits": str(credits),
                    "images": str(images),
                },
            },
            metadata={"supabase_user_id": user_id, "subscription_tier": tier},
        )

    async def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        return await self._call(stripe.checkout.Session.retrieve, session_id)

    # ============ Subscriptions ============

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        return await self._call(stripe.Subscription.retrieve, subscription_id)

    async def set_cancel_at_period_end(
        self, subscription_id: str, cancel: bool
    ) -> dict[str, Any]:
        """Schedule (or undo) cancellation at the end of the billing period."""
        return await self._call(
            stripe.Subscription.modify, subscription_id, cancel_at_period_end=cancel
        )

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Cancel immediately."""
        return await self._call(stripe.Subscription.cancel, subscription_id)

    async def create_portal_session(self, customer_id: str, return_url: str) -> str:
        """Billing portal URL for a customer."""
        portal = await self._call(
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )
        return portal["url"]

    # ============ Webhooks ============

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """
        Verify a webhook signature and return the event as a dict.

        Raises:
            ConfigurationError: no webhook secret configured
            BadRequestError: payload or signature is invalid
        """
        if not self.webhook_secret:
            raise ConfigurationError(message="Stripe webhook secret is not configured")

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise BadRequestError(message=f"Webhook Error: {e}")

        return json.loads(payload)


# Singleton instance
_stripe_service: StripeService | None = None


def get_stripe_service() -> StripeService:
    """Get or create the Stripe service instance."""
    global _stripe_service
    if _stripe_service is None:
        _stripe_service = StripeService()
    return _stripe_service
