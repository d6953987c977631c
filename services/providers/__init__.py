"""
Image provider layer.

Gemini is the only image backend; the base module holds the shared
request/result types and error classification.
"""

from .base import (
    ERROR_TYPE_INVALID_KEY,
    ERROR_TYPE_INVALID_REQUEST,
    ERROR_TYPE_NO_IMAGE,
    ERROR_TYPE_RATE_LIMITED,
    ERROR_TYPE_SAFETY_BLOCKED,
    ERROR_TYPE_UNKNOWN,
    GenerationRequest,
    GenerationResult,
    ImageProvider,
    InputImage,
    RetryConfig,
    classify_error,
    get_friendly_error_message,
    is_retryable_error,
)
from .gemini import GeminiProvider, build_prompt, get_image_provider

__all__ = [
    # Error types
    "ERROR_TYPE_INVALID_KEY",
    "ERROR_TYPE_INVALID_REQUEST",
    "ERROR_TYPE_NO_IMAGE",
    "ERROR_TYPE_RATE_LIMITED",
    "ERROR_TYPE_SAFETY_BLOCKED",
    "ERROR_TYPE_UNKNOWN",
    # Data classes
    "GenerationRequest",
    "GenerationResult",
    "InputImage",
    "RetryConfig",
    # Protocols
    "ImageProvider",
    # Providers
    "GeminiProvider",
    "get_image_provider",
    "build_prompt",
    # Utilities
    "classify_error",
    "get_friendly_error_message",
    "is_retryable_error",
]
