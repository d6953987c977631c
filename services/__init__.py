"""
Services module for NanoBanana.
"""
from .auth_service import AuthService, LoginResult
from .chat_session import ChatSessionService
from .credit_service import CreditCheck, CreditService, DeductionResult
from .generation_service import GenerationService
from .stripe_service import StripeService, get_stripe_service
from .stripe_webhooks import StripeWebhookHandler
from .subscription_service import PurchaseResult, SubscriptionService

__all__ = [
    "AuthService",
    "LoginResult",
    "ChatSessionService",
    "CreditCheck",
    "CreditService",
    "DeductionResult",
    "GenerationService",
    "StripeService",
    "get_stripe_service",
    "StripeWebhookHandler",
    "PurchaseResult",
    "SubscriptionService",
]
