"""
Stripe checkout and subscription management schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer


class CheckoutRequest(BaseModel):
    """Request to start a Stripe Checkout for a tier."""

    tier: Optional[str] = None
    success_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("successUrl", "success_url")
    )
    cancel_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("cancelUrl", "cancel_url")
    )


class CheckoutResponse(BaseModel):
    """Created Checkout Session."""

    success: bool = True
    session_id: str = Field(..., serialization_alias="sessionId")
    session_url: Optional[str] = Field(None, serialization_alias="sessionUrl")


class CheckoutSessionInfo(BaseModel):
    """Checkout Session details for the success page."""

    id: str
    payment_status: Optional[str] = None
    status: Optional[str] = None
    customer_email: Optional[str] = None
    subscription_id: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None


class CheckoutSessionResponse(BaseModel):
    success: bool = True
    session: CheckoutSessionInfo


class StripeDetails(BaseModel):
    """Live subscription state from Stripe."""

    status: Optional[str] = None
    cancel_at_period_end: Optional[bool] = None
    current_period_end: Optional[datetime] = None
    cancel_at: Optional[datetime] = None


class SubscriptionInfo(BaseModel):
    """A stored subscription record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    payment_provider: str
    tier: str
    price: Decimal
    credits_per_month: int
    images_per_month: int
    status: str
    purchased_at: Optional[datetime] = None
    expires_at: datetime
    auto_renew: bool
    stripe_subscription_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    apple_transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)


class ManagedSubscription(SubscriptionInfo):
    """Stored subscription with its live Stripe state."""

    stripe_details: Optional[StripeDetails] = None


class ManageSubscriptionResponse(BaseModel):
    success: bool = True
    subscription: Optional[ManagedSubscription] = None
    message: Optional[str] = None


class ManageSubscriptionRequest(BaseModel):
    """Cancel at period end or resume."""

    action: Optional[str] = Field(None, description="cancel or resume")


class PortalResponse(BaseModel):
    success: bool = True
    portal_url: str


class WebhookResponse(BaseModel):
    received: bool = True
    duplicate: Optional[bool] = None
