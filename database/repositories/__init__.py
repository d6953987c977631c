"""
Repository layer for database access.

Provides async CRUD operations for all models.
"""

from .chat_repo import ChatRepository
from .credit_repo import CreditRepository
from .generation_repo import GenerationRepository
from .payment_repo import PaymentRepository, UploadRepository
from .subscription_repo import SubscriptionRepository
from .user_repo import UserRepository

__all__ = [
    "UserRepository",
    "CreditRepository",
    "GenerationRepository",
    "ChatRepository",
    "SubscriptionRepository",
    "PaymentRepository",
    "UploadRepository",
]
