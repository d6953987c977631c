"""
App Store subscription router.

Endpoints:
- POST /api/subscription/purchase - Activate an App Store purchase
- GET /api/subscription/status - Current tier, credits and plans
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_subscription_service
from api.schemas.stripe import SubscriptionInfo
from api.schemas.subscription import (
    PurchaseRequest,
    PurchaseResponse,
    SubscriptionStatusResponse,
)
from core.auth import require_current_user
from database.models import User
from services import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.post("/purchase", response_model=PurchaseResponse)
async def purchase_subscription(
    request: PurchaseRequest,
    user: User = Depends(require_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Activate a subscription bought through the App Store.

    Grants the plan's credits and sets the tier for 30 days.
    """
    result = await subscription_service.purchase_apple(
        user,
        tier=request.tier,
        receipt_data=request.receipt_data,
        transaction_id=request.transaction_id,
    )

    return PurchaseResponse(
        subscription=SubscriptionInfo.model_validate(result.subscription),
        credits_added=result.credits_added,
    )


@router.get("/status", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    user: User = Depends(require_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Subscription tier, balance and available plans."""
    status = await subscription_service.get_status(user)
    active = status.pop("active_subscription")

    return SubscriptionStatusResponse(
        **status,
        active_subscription=SubscriptionInfo.model_validate(active) if active else None,
    )
