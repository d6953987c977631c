"""
Base data classes and error helpers for image providers.

Providers return a GenerationResult instead of raising so callers can
record the failure before deciding which HTTP error to surface.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


# ============ Error Types ============

ERROR_TYPE_INVALID_KEY = "invalid_key"
ERROR_TYPE_RATE_LIMITED = "rate_limited"
ERROR_TYPE_INVALID_REQUEST = "invalid_request"
ERROR_TYPE_SAFETY_BLOCKED = "safety_blocked"
ERROR_TYPE_NO_IMAGE = "no_image"
ERROR_TYPE_UNKNOWN = "unknown"

FRIENDLY_ERROR_MESSAGES = {
    ERROR_TYPE_INVALID_KEY: "Invalid API key. Please check your configuration.",
    ERROR_TYPE_RATE_LIMITED: "API quota exceeded. Please try again later.",
    ERROR_TYPE_INVALID_REQUEST: "Invalid request. Please check your input.",
    ERROR_TYPE_SAFETY_BLOCKED: "Content blocked by safety filter",
    ERROR_TYPE_NO_IMAGE: "No image was generated. Please try a different prompt.",
    ERROR_TYPE_UNKNOWN: "Failed to generate image. Please try again.",
}

# Errors that will fail the same way on every attempt
NON_RETRYABLE_ERRORS = [
    "credits",
    "safety",
    "blocked",
    "api key",
    "api_key",
    "permission_denied",
]


# ============ Utility Functions ============


def is_retryable_error(error_msg: str, status_code: int | None = None) -> bool:
    """Check if an error is worth retrying."""
    if status_code in (401, 403):
        return False
    error_lower = error_msg.lower()
    return not any(keyword in error_lower for keyword in NON_RETRYABLE_ERRORS)


def classify_error(error_msg: str, status_code: int | None = None) -> str:
    """
    Classify a provider error.

    Returns:
        Error type constant string
    """
    error_lower = error_msg.lower()

    if status_code == 401 or "api key" in error_lower or "api_key" in error_lower:
        return ERROR_TYPE_INVALID_KEY
    elif status_code == 429 or "quota" in error_lower:
        return ERROR_TYPE_RATE_LIMITED
    elif "safety" in error_lower or "blocked" in error_lower:
        return ERROR_TYPE_SAFETY_BLOCKED
    elif status_code == 400:
        return ERROR_TYPE_INVALID_REQUEST
    elif "no image" in error_lower:
        return ERROR_TYPE_NO_IMAGE
    else:
        return ERROR_TYPE_UNKNOWN


def get_friendly_error_message(error_type: str | None) -> str:
    """Map an error type to the message shown to users."""
    return FRIENDLY_ERROR_MESSAGES.get(
        error_type or ERROR_TYPE_UNKNOWN, FRIENDLY_ERROR_MESSAGES[ERROR_TYPE_UNKNOWN]
    )


# ============ Data Classes ============


@dataclass
class InputImage:
    """Raw bytes of a reference image."""

    data: bytes
    mime_type: str = "image/png"


@dataclass
class GenerationRequest:
    """Generation request passed to a provider."""

    prompt: str
    generation_type: str = "text-to-image"
    input_images: list[InputImage] = field(default_factory=list)
    user_id: str | None = None


@dataclass
class GenerationResult:
    """Generation result from a provider."""

    success: bool = False
    image_data: bytes | None = None
    mime_type: str | None = None
    text_response: str | None = None
    # Metadata
    provider: str = ""
    model: str = ""
    attempts: int = 0
    duration: float = 0.0  # seconds
    # Error handling
    error: str | None = None
    error_type: str | None = None
    safety_blocked: bool = False


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    retry_delay: float = 2.0


# ============ Provider Protocol ============


@runtime_checkable
class ImageProvider(Protocol):
    """Protocol that image generation providers implement."""

    @property
    def name(self) -> str:
        ...

    @property
    def is_available(self) -> bool:
        """Check if the provider has credentials configured."""
        ...

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate an image, reporting failures in the result."""
        ...

    async def health_check(self) -> dict:
        """
        Perform a health check on this provider.

        Returns:
            Dict with 'status' ('healthy', 'unhealthy') and optional 'message'
        """
        ...
