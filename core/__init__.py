"""
Core modules for the NanoBanana API.

This package contains fundamental utilities used across the application:
- config: Application settings and configuration
- security: JWT token handling
- redis: Redis connection management
- exceptions: Custom exception classes
- i18n: Localized user-facing messages
"""

from .config import Settings, get_settings
from .exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConfigurationError,
    ContentBlockedError,
    DuplicateTransactionError,
    ExternalServiceError,
    GenerationError,
    InsufficientCreditsError,
    NotFoundError,
    PaymentError,
    RateLimitError,
    StorageError,
    SubscriptionNotFoundError,
    ValidationError,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Exceptions
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "ConfigurationError",
    "ContentBlockedError",
    "DuplicateTransactionError",
    "ExternalServiceError",
    "GenerationError",
    "InsufficientCreditsError",
    "NotFoundError",
    "PaymentError",
    "RateLimitError",
    "StorageError",
    "SubscriptionNotFoundError",
    "ValidationError",
]
