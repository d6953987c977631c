"""
Google Gemini image provider.

Wraps the google-genai SDK; calls are synchronous so they run in the
default executor.
"""

import asyncio
import logging
import time
from typing import Any

from google import genai
from google.genai import types

from core.config import get_settings

from .base import (
    ERROR_TYPE_INVALID_KEY,
    ERROR_TYPE_NO_IMAGE,
    ERROR_TYPE_SAFETY_BLOCKED,
    GenerationRequest,
    GenerationResult,
    RetryConfig,
    classify_error,
    get_friendly_error_message,
    is_retryable_error,
)

logger = logging.getLogger(__name__)

TEXT_TO_IMAGE_TEMPLATE = "Generate an image of: {prompt}"
IMAGE_TO_IMAGE_TEMPLATE = (
    "Based on the provided image(s), generate a new image with the following description: {prompt}"
)


def build_prompt(request: GenerationRequest) -> str:
    """Wrap the user prompt in the instruction for the generation mode."""
    if request.input_images:
        return IMAGE_TO_IMAGE_TEMPLATE.format(prompt=request.prompt)
    return TEXT_TO_IMAGE_TEMPLATE.format(prompt=request.prompt)


class GeminiProvider:
    """
    Gemini image generation provider.

    Supports text-to-image and image-to-image (one or more reference
    images sent inline with the prompt).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        retry_config: RetryConfig | None = None,
        client: Any | None = None,
    ):
        settings = get_settings()
        self._api_key = api_key or settings.gemini_api_key
        self._model = model or settings.gemini_model
        self.retry_config = retry_config or RetryConfig(
            max_retries=settings.gemini_max_retries,
            retry_delay=settings.gemini_retry_delay,
        )
        self._client = client
        if self._client is None and self._api_key:
            self._client = genai.Client(api_key=self._api_key)

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def _build_contents(self, request: GenerationRequest) -> list[Any]:
        contents: list[Any] = [build_prompt(request)]
        for image in request.input_images:
            contents.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))
        return contents

    def _process_response(self, response: Any, result: GenerationResult) -> bool:
        """
        Extract the first image from the response into result.

        Returns False when the candidate was blocked by the safety filter.
        """
        if not response.candidates:
            return True

        candidate = response.candidates[0]

        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason is not None and "SAFETY" in str(finish_reason):
            result.safety_blocked = True
            result.error = get_friendly_error_message(ERROR_TYPE_SAFETY_BLOCKED)
            result.error_type = ERROR_TYPE_SAFETY_BLOCKED
            return False

        content = getattr(candidate, "content", None)
        if content and content.parts:
            for part in content.parts:
                inline_data = getattr(part, "inline_data", None)
                if inline_data and inline_data.data:
                    result.image_data = inline_data.data
                    result.mime_type = inline_data.mime_type or "image/png"
                    break
                if getattr(part, "text", None):
                    result.text_response = part.text

        return True

    def _generate_with_retry(self, contents: list[Any], result: GenerationResult) -> GenerationResult:
        """Call the SDK, retrying transient failures and empty responses."""
        config = types.GenerateContentConfig(response_modalities=["Text", "Image"])
        max_attempts = self.retry_config.max_retries + 1

        for attempt in range(max_attempts):
            result.attempts = attempt + 1
            is_last = attempt == max_attempts - 1

            try:
                response = self._client.models.generate_content(
                    model=self._model,
                    contents=contents,
                    config=config,
                )
            except Exception as e:
                error_msg = str(e)
                status_code = getattr(e, "code", None)
                if not isinstance(status_code, int):
                    status_code = None

                result.error_type = classify_error(error_msg, status_code)
                result.error = get_friendly_error_message(result.error_type)
                result.safety_blocked = result.error_type == ERROR_TYPE_SAFETY_BLOCKED

                if is_last or not is_retryable_error(error_msg, status_code):
                    logger.error(f"[Gemini] Generation failed on attempt {attempt + 1}: {error_msg}")
                    return result

                logger.warning(
                    f"[Gemini] Error on attempt {attempt + 1}: {error_msg}. "
                    f"Retrying in {self.retry_config.retry_delay}s..."
                )
                time.sleep(self.retry_config.retry_delay)
                continue

            if not self._process_response(response, result):
                logger.warning("[Gemini] Response blocked by safety filter")
                return result

            if result.image_data:
                result.success = True
                result.error = None
                result.error_type = None
                return result

            result.error_type = ERROR_TYPE_NO_IMAGE
            result.error = get_friendly_error_message(ERROR_TYPE_NO_IMAGE)
            if is_last:
                logger.error(f"[Gemini] No image returned after {attempt + 1} attempts")
                return result

            logger.warning(f"[Gemini] No image on attempt {attempt + 1}, retrying...")
            time.sleep(self.retry_config.retry_delay)

        return result

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate an image based on the request."""
        start_time = time.time()
        result = GenerationResult(provider=self.name, model=self._model)

        if not self._client:
            result.error_type = ERROR_TYPE_INVALID_KEY
            result.error = get_friendly_error_message(result.error_type)
            return result

        contents = self._build_contents(request)
        logger.info(
            f"[Gemini] Generating with {self._model}: type={request.generation_type}, "
            f"input_images={len(request.input_images)}"
        )

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self._generate_with_retry, contents, result)
        result.duration = time.time() - start_time
        return result

    async def health_check(self) -> dict:
        """Perform a health check on this provider."""
        if not self._client:
            return {
                "status": "unhealthy",
                "message": "API key not configured",
            }

        try:
            start = time.time()
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, lambda: self._client.models.get(model=self._model))
            latency = time.time() - start

            return {
                "status": "healthy",
                "response_time_ms": int(latency * 1000),
            }
        except Exception as e:
            logger.warning(f"[Gemini] Health check failed: {e}")
            return {
                "status": "unhealthy",
                "message": str(e)[:100],
            }


_provider: GeminiProvider | None = None


def get_image_provider() -> GeminiProvider:
    """Get the process-wide Gemini provider."""
    global _provider
    if _provider is None:
        _provider = GeminiProvider()
    return _provider
