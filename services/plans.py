"""
Subscription plan catalogue and per-generation credit costs.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

from core.config import get_settings


@dataclass(frozen=True)
class SubscriptionPlan:
    """A purchasable tier."""

    tier: str
    name: str
    description: str
    price: Decimal
    credits: int  # granted per billing period
    images: int  # advertised generations per period
    apple_product_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["price"] = float(self.price)
        return data


SUBSCRIPTION_PLANS: dict[str, SubscriptionPlan] = {
    "free": SubscriptionPlan(
        tier="free",
        name="Free",
        description="Get started with 10 free attempts and 40 credits",
        price=Decimal("0"),
        credits=40,
        images=10,
    ),
    "basic": SubscriptionPlan(
        tier="basic",
        name="Basic",
        description="800 credits, 200 image generations per month",
        price=Decimal("9.9"),
        credits=800,
        images=200,
        apple_product_id="com.nanobanana.basic",
    ),
    "pro": SubscriptionPlan(
        tier="pro",
        name="Pro",
        description="3000 credits, 750 image generations per month",
        price=Decimal("29.9"),
        credits=3000,
        images=750,
        apple_product_id="com.nanobanana.pro",
    ),
    "premium": SubscriptionPlan(
        tier="premium",
        name="Premium",
        description="8000 credits, 2000 image generations per month",
        price=Decimal("59.9"),
        credits=8000,
        images=2000,
        apple_product_id="com.nanobanana.premium",
    ),
}

CREDITS_PER_GENERATION: dict[str, int] = {
    "text-to-image": 1,
    "image-to-image": 2,
}

DEFAULT_GENERATION_COST = 1

APPLE_PRODUCT_PREFIX = "com.nanobanana."


def get_plan(tier: str | None) -> SubscriptionPlan | None:
    """Get a plan by tier name."""
    if not tier:
        return None
    return SUBSCRIPTION_PLANS.get(tier)


def get_plan_by_product_id(product_id: str) -> SubscriptionPlan | None:
    """Find the plan sold under an App Store product id."""
    if not product_id:
        return None
    for plan in SUBSCRIPTION_PLANS.values():
        if plan.apple_product_id == product_id:
            return plan
    return None


def get_paid_plans() -> list[SubscriptionPlan]:
    """All plans except free, cheapest first."""
    return [plan for plan in SUBSCRIPTION_PLANS.values() if plan.tier != "free"]


def get_credits_for_generation_type(generation_type: str | None) -> int:
    """Credit cost of one generation of the given type."""
    return CREDITS_PER_GENERATION.get(generation_type or "", DEFAULT_GENERATION_COST)


# ============ Stripe Prices ============


def is_price_configured(price_id: str | None) -> bool:
    """A price id is usable once it is set and no longer a placeholder."""
    return bool(price_id) and "placeholder" not in price_id


def get_price_id_for_tier(tier: str) -> str | None:
    """Stripe price id for a paid tier, or None when not configured."""
    price_id = get_settings().stripe_price_ids.get(tier)
    return price_id if is_price_configured(price_id) else None


def get_tier_for_price_id(price_id: str | None) -> str | None:
    """Map a Stripe price id back to its tier."""
    if not is_price_configured(price_id):
        return None
    for tier, configured in get_settings().stripe_price_ids.items():
        if configured == price_id:
            return tier
    return None
