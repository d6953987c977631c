"""
SQLAlchemy models for NanoBanana.
"""

from .base import Base, TimestampMixin, ensure_aware, utcnow
from .chat import MESSAGE_TYPES, ChatMessage
from .credit import TRANSACTION_TYPES, CreditTransaction
from .generation import GENERATION_STATUSES, GENERATION_TYPES, ImageGeneration
from .payment import PaymentHistory
from .subscription import PAYMENT_PROVIDERS, PAYMENT_STATUSES, Subscription
from .upload import UploadedImage
from .user import User

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "utcnow",
    "ensure_aware",
    # Models
    "User",
    "ImageGeneration",
    "ChatMessage",
    "Subscription",
    "CreditTransaction",
    "PaymentHistory",
    "UploadedImage",
    # Enumerations
    "GENERATION_STATUSES",
    "GENERATION_TYPES",
    "MESSAGE_TYPES",
    "TRANSACTION_TYPES",
    "PAYMENT_STATUSES",
    "PAYMENT_PROVIDERS",
]
