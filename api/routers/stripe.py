"""
Stripe subscription router.

Endpoints:
- POST /api/stripe/create-checkout-session - Start a Checkout for a tier
- GET /api/stripe/create-checkout-session - Checkout Session details
- GET /api/stripe/manage-subscription - Active subscription with Stripe state
- POST /api/stripe/manage-subscription - Cancel at period end / resume
- DELETE /api/stripe/manage-subscription - Cancel immediately
- PUT /api/stripe/manage-subscription - Billing portal session
- POST /api/stripe/webhook - Stripe event webhook
"""

import logging
from datetime import datetime, timezone
from typing import Any

import stripe
from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from api.dependencies import (
    get_stripe,
    get_subscription_repository,
    get_user_repository,
    get_webhook_handler,
)
from api.schemas.common import MessageResponse
from api.schemas.stripe import (
    CheckoutRequest,
    CheckoutResponse,
    CheckoutSessionInfo,
    CheckoutSessionResponse,
    ManagedSubscription,
    ManageSubscriptionRequest,
    ManageSubscriptionResponse,
    PortalResponse,
    StripeDetails,
    SubscriptionInfo,
    WebhookResponse,
)
from core.auth import require_current_user
from core.config import get_settings
from core.exceptions import BadRequestError, ConfigurationError, SubscriptionNotFoundError
from database.models import Subscription, User, utcnow
from database.repositories import SubscriptionRepository, UserRepository
from services import StripeService, StripeWebhookHandler
from services.plans import get_plan, get_price_id_for_tier
from services.stripe_service import get_period_end

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stripe", tags=["stripe"])


# ============ Helpers ============


def _timestamp_to_datetime(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def stripe_details(stripe_subscription: dict[str, Any] | None) -> StripeDetails | None:
    """Live status fields of a Stripe subscription."""
    if not stripe_subscription:
        return None
    return StripeDetails(
        status=stripe_subscription.get("status"),
        cancel_at_period_end=stripe_subscription.get("cancel_at_period_end"),
        current_period_end=_timestamp_to_datetime(get_period_end(stripe_subscription)),
        cancel_at=_timestamp_to_datetime(stripe_subscription.get("cancel_at")),
    )


def subscription_to_managed(
    subscription: Subscription,
    stripe_subscription: dict[str, Any] | None,
) -> ManagedSubscription:
    info = SubscriptionInfo.model_validate(subscription)
    return ManagedSubscription(
        **info.model_dump(),
        stripe_details=stripe_details(stripe_subscription),
    )


async def require_active_stripe_subscription(
    user: User,
    subscription_repo: SubscriptionRepository,
) -> Subscription:
    subscription = await subscription_repo.get_active(user.id, payment_provider="stripe")
    if subscription is None or not subscription.stripe_subscription_id:
        raise SubscriptionNotFoundError(message="No active Stripe subscription found")
    return subscription


# ============ Checkout ============


@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout_session(
    request: CheckoutRequest,
    user: User = Depends(require_current_user),
    user_repo: UserRepository = Depends(get_user_repository),
    subscription_repo: SubscriptionRepository = Depends(get_subscription_repository),
    stripe_service: StripeService = Depends(get_stripe),
):
    """Create a subscription-mode Checkout Session for a paid tier."""
    plan = get_plan(request.tier)
    if plan is None or plan.tier == "free":
        raise BadRequestError(message="Invalid subscription tier")

    price_id = get_price_id_for_tier(plan.tier)
    if price_id is None:
        raise ConfigurationError(
            message="Stripe price ID not configured for this plan. Please contact support."
        )

    customer_id = user.stripe_customer_id
    if not customer_id:
        customer_id = await stripe_service.create_customer(user.email, str(user.id))
        await user_repo.update(user, stripe_customer_id=customer_id)

    if await subscription_repo.get_active(user.id, payment_provider="stripe"):
        raise BadRequestError(
            message="You already have an active Stripe subscription. "
            "Please manage it from your account page."
        )

    settings = get_settings()
    checkout = await stripe_service.create_checkout_session(
        customer_id=customer_id,
        price_id=price_id,
        user_id=str(user.id),
        tier=plan.tier,
        credits=plan.credits,
        images=plan.images,
        success_url=request.success_url or settings.checkout_success_url,
        cancel_url=request.cancel_url or settings.checkout_cancel_url,
    )

    logger.info(f"Created checkout session {checkout['id']} for user {user.id} ({plan.tier})")
    return CheckoutResponse(session_id=checkout["id"], session_url=checkout.get("url"))


@router.get("/create-checkout-session", response_model=CheckoutSessionResponse)
async def get_checkout_session(
    session_id: str | None = Query(None),
    stripe_service: StripeService = Depends(get_stripe),
):
    """Checkout Session details for the success page."""
    if not session_id:
        raise BadRequestError(message="Session ID is required")

    checkout = await stripe_service.retrieve_checkout_session(session_id)
    customer_details = checkout.get("customer_details") or {}

    return CheckoutSessionResponse(
        session=CheckoutSessionInfo(
            id=checkout["id"],
            payment_status=checkout.get("payment_status"),
            status=checkout.get("status"),
            customer_email=customer_details.get("email"),
            subscription_id=checkout.get("subscription"),
            amount_total=checkout.get("amount_total"),
            currency=checkout.get("currency"),
        )
    )


# ============ Subscription Management ============


@router.get("/manage-subscription", response_model=ManageSubscriptionResponse)
async def get_managed_subscription(
    user: User = Depends(require_current_user),
    subscription_repo: SubscriptionRepository = Depends(get_subscription_repository),
    stripe_service: StripeService = Depends(get_stripe),
):
    """Latest active Stripe subscription with its live Stripe state."""
    subscription = await subscription_repo.get_active(user.id, payment_provider="stripe")
    if subscription is None:
        return ManageSubscriptionResponse(message="No active Stripe subscription found")

    stripe_subscription = None
    if subscription.stripe_subscription_id:
        try:
            stripe_subscription = await stripe_service.retrieve_subscription(
                subscription.stripe_subscription_id
            )
        except stripe.StripeError as e:
            logger.error(f"Error fetching Stripe subscription: {e}")

    return ManageSubscriptionResponse(
        subscription=subscription_to_managed(subscription, stripe_subscription)
    )


@router.post("/manage-subscription", response_model=ManageSubscriptionResponse)
async def update_managed_subscription(
    request: ManageSubscriptionRequest,
    user: User = Depends(require_current_user),
    subscription_repo: SubscriptionRepository = Depends(get_subscription_repository),
    stripe_service: StripeService = Depends(get_stripe),
):
    """Cancel at the end of the billing period, or resume."""
    if request.action not in ("cancel", "resume"):
        raise BadRequestError(message='Invalid action. Use "cancel" or "resume"')

    subscription = await require_active_stripe_subscription(user, subscription_repo)
    cancel = request.action == "cancel"

    stripe_subscription = await stripe_service.set_cancel_at_period_end(
        subscription.stripe_subscription_id, cancel
    )
    await subscription_repo.update(subscription, auto_renew=not cancel)

    logger.info(f"Subscription {subscription.id} {request.action} requested by user {user.id}")
    return ManageSubscriptionResponse(
        subscription=subscription_to_managed(subscription, stripe_subscription),
        message=(
            "Subscription will be cancelled at the end of the billing period"
            if cancel
            else "Subscription resumed successfully"
        ),
    )


@router.delete("/manage-subscription", response_model=MessageResponse)
async def cancel_subscription_now(
    user: User = Depends(require_current_user),
    user_repo: UserRepository = Depends(get_user_repository),
    subscription_repo: SubscriptionRepository = Depends(get_subscription_repository),
    stripe_service: StripeService = Depends(get_stripe),
):
    """Cancel immediately and revert the user to the free tier."""
    subscription = await require_active_stripe_subscription(user, subscription_repo)

    await stripe_service.cancel_subscription(subscription.stripe_subscription_id)
    await subscription_repo.update(
        subscription,
        status="cancelled",
        auto_renew=False,
        expires_at=utcnow(),
    )
    await user_repo.set_subscription(user, "free", None)

    logger.info(f"Subscription {subscription.id} cancelled immediately for user {user.id}")
    return MessageResponse(message="Subscription cancelled immediately")


@router.put("/manage-subscription", response_model=PortalResponse)
async def create_portal_session(
    user: User = Depends(require_current_user),
    stripe_service: StripeService = Depends(get_stripe),
):
    """Billing portal for payment methods and invoices."""
    if not user.stripe_customer_id:
        raise SubscriptionNotFoundError(message="No Stripe customer found for this user")

    portal_url = await stripe_service.create_portal_session(
        user.stripe_customer_id,
        return_url=get_settings().checkout_cancel_url,
    )
    return PortalResponse(portal_url=portal_url)


# ============ Webhook ============


@router.post("/webhook", response_model=WebhookResponse, response_model_exclude_none=True)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="stripe-signature"),
    stripe_service: StripeService = Depends(get_stripe),
    handler: StripeWebhookHandler = Depends(get_webhook_handler),
):
    """
    Receive a Stripe event.

    The signature is verified against the raw body. Each event id is
    processed at most once.
    """
    if not stripe_signature:
        logger.error("Missing Stripe signature")
        raise BadRequestError(message="Missing signature")

    payload = await request.body()
    event = stripe_service.construct_event(payload, stripe_signature)

    try:
        result = await handler.process(event)
    except Exception:
        logger.exception(f"Error processing Stripe event {event.get('id')}")
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})

    return WebhookResponse(**result)
