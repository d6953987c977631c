"""
Apple IAP purchase and subscription status schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from .stripe import SubscriptionInfo


class PlanInfo(BaseModel):
    """A subscription plan."""

    tier: str
    name: str
    description: str
    price: Decimal
    credits: int
    images: int
    apple_product_id: Optional[str] = None

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)


class PurchaseRequest(BaseModel):
    """App Store purchase to activate."""

    tier: Optional[str] = None
    receipt_data: Optional[str] = None
    transaction_id: Optional[str] = None


class PurchaseResponse(BaseModel):
    success: bool = True
    subscription: SubscriptionInfo
    credits_added: int


class SubscriptionStatusResponse(BaseModel):
    """Tier, balance and plans of the current user."""

    success: bool = True
    subscription_tier: str
    subscription_expires_at: Optional[datetime] = None
    current_credits: int
    free_attempts: int
    plan_details: Optional[PlanInfo] = None
    active_subscription: Optional[SubscriptionInfo] = None
    available_plans: list[PlanInfo] = Field(default_factory=list)
