"""
Custom exception classes for the application.

All exceptions inherit from AppException and include:
- error_code: Machine-readable error code for i18n
- message: Human-readable error message
- status_code: HTTP status code to return
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors."""

    error_code: str = "internal_error"
    message: str = "An unexpected error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class BadRequestError(AppException):
    """Raised when a request is missing data or is otherwise malformed."""

    error_code = "bad_request"
    message = "Invalid request"
    status_code = 400


class AuthenticationError(AppException):
    """Raised when authentication fails."""

    error_code = "authentication_failed"
    message = "Authentication failed"
    status_code = 401


class InsufficientCreditsError(AppException):
    """Raised when a user cannot pay for an operation."""

    error_code = "insufficient_credits"
    message = "Insufficient credits"
    status_code = 402


class AuthorizationError(AppException):
    """Raised when user lacks permission."""

    error_code = "authorization_failed"
    message = "You do not have permission to perform this action"
    status_code = 403


class NotFoundError(AppException):
    """Raised when a resource is not found."""

    error_code = "not_found"
    message = "Resource not found"
    status_code = 404


class ValidationError(AppException):
    """Raised when input validation fails."""

    error_code = "validation_error"
    message = "Invalid input"
    status_code = 422


class RateLimitError(AppException):
    """Raised when rate limit is exceeded."""

    error_code = "rate_limit_exceeded"
    message = "Too many requests, please try again later"
    status_code = 429


class ExternalServiceError(AppException):
    """Raised when an external service fails."""

    error_code = "external_service_error"
    message = "External service unavailable"
    status_code = 503


class ContentBlockedError(AppException):
    """Raised when content is blocked by safety filter."""

    error_code = "content_blocked"
    message = "Content blocked by safety filter"
    status_code = 400


class GenerationError(AppException):
    """Raised when image generation fails."""

    error_code = "generation_failed"
    message = "Failed to generate image. Please try again."
    status_code = 500


class StorageError(AppException):
    """Raised when storage operation fails."""

    error_code = "storage_error"
    message = "Storage operation failed"
    status_code = 500


class ConfigurationError(AppException):
    """Raised when a required integration is not configured."""

    error_code = "configuration_error"
    message = "Service is not configured"
    status_code = 500


class PaymentError(AppException):
    """Raised when the payment provider rejects or fails a request."""

    error_code = "payment_error"
    message = "Payment provider request failed"
    status_code = 502


class DuplicateTransactionError(BadRequestError):
    """Raised when a store transaction was already processed."""

    error_code = "duplicate_transaction"
    message = "Transaction already processed"


class UserNotFoundError(NotFoundError):
    """Raised when a user record does not exist."""

    error_code = "user_not_found"
    message = "User not found"


class GenerationNotFoundError(NotFoundError):
    """Raised when a generation is missing or owned by someone else."""

    error_code = "generation_not_found"
    message = "Generation not found"


class SubscriptionNotFoundError(NotFoundError):
    """Raised when no active subscription exists."""

    error_code = "subscription_not_found"
    message = "No active Stripe subscription found"
