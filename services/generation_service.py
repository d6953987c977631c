"""
Image generation orchestration.

Flow for one request:
check credits -> cooldown -> processing row -> Gemini -> storage ->
deduct credits -> completed row.

Credits are charged only after an image exists. The processing and failed
states are committed as they happen so a failed attempt stays visible in
the user's history even though the request itself errors.
"""

import base64
import binascii
import logging
from io import BytesIO
from typing import Any
from uuid import UUID

import httpx
from PIL import Image, UnidentifiedImageError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.exceptions import (
    AppException,
    ContentBlockedError,
    ExternalServiceError,
    GenerationError,
    InsufficientCreditsError,
    RateLimitError,
)
from core.i18n import translate
from core.redis import get_redis
from database.models import User
from database.repositories import GenerationRepository
from services.credit_service import CreditService
from services.plans import get_credits_for_generation_type
from services.providers import (
    ERROR_TYPE_INVALID_KEY,
    ERROR_TYPE_RATE_LIMITED,
    GenerationRequest,
    GenerationResult,
    ImageProvider,
    InputImage,
    get_image_provider,
)
from services.storage import StorageManager, get_storage_manager, to_data_url

logger = logging.getLogger(__name__)

COOLDOWN_KEY = "generate:cooldown:{user_id}"
LOCAL_IMAGE_PREFIX = "/api/images/"


def _sniff_mime_type(data: bytes, default: str = "image/png") -> str:
    """Detect an image MIME type from its bytes."""
    try:
        with Image.open(BytesIO(data)) as img:
            return Image.MIME.get(img.format or "", default)
    except (UnidentifiedImageError, OSError):
        return default


def decode_data_url(url: str) -> InputImage:
    """
    Decode a data:[<mime>][;base64],<data> URL.

    Raises:
        ValueError: the URL is not a base64 data URL
    """
    try:
        header, payload = url.split(",", 1)
    except ValueError:
        raise ValueError("Invalid data URL format")

    if ";base64" not in header:
        raise ValueError("Only base64 data URLs are supported")

    mime_type = header[len("data:"):].split(";", 1)[0] or None
    try:
        data = base64.b64decode(payload, validate=False)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}")

    return InputImage(data=data, mime_type=mime_type or _sniff_mime_type(data))


class GenerationService:
    """Runs one image generation on behalf of a user."""

    def __init__(
        self,
        session: AsyncSession,
        provider: ImageProvider | None = None,
        storage: StorageManager | None = None,
    ):
        self.session = session
        self.provider = provider or get_image_provider()
        self.storage = storage or get_storage_manager()
        self.credits = CreditService(session)
        self.generations = GenerationRepository(session)
        self.settings = get_settings()

    # ============ Cooldown ============

    async def enforce_cooldown(self, user_id: UUID) -> None:
        """Allow one generation per user per cooldown window."""
        seconds = self.settings.generation_cooldown_seconds
        if seconds <= 0:
            return

        redis = await get_redis()
        key = COOLDOWN_KEY.format(user_id=user_id)
        acquired = await redis.set(key, "1", ex=seconds, nx=True)
        if not acquired:
            remaining = await redis.ttl(key)
            remaining = remaining if remaining and remaining > 0 else seconds
            raise RateLimitError(
                message=f"Please wait {remaining}s before next generation",
                details={"cooldown_remaining": remaining},
            )

    # ============ Input Images ============

    async def _fetch_image(self, client: httpx.AsyncClient, url: str) -> InputImage:
        if url.startswith("data:"):
            return decode_data_url(url)

        if url.startswith(LOCAL_IMAGE_PREFIX):
            bucket, _, key = url[len(LOCAL_IMAGE_PREFIX):].partition("/")
            data = await self.storage.load(bucket, key)
            if data is None:
                raise ValueError(f"Image not found in storage: {url}")
            return InputImage(data=data, mime_type=_sniff_mime_type(data))

        response = await client.get(url)
        response.raise_for_status()
        content_type = response.headers.get("content-type", "").split(";", 1)[0]
        data = response.content
        mime_type = content_type if content_type.startswith("image/") else _sniff_mime_type(data)
        return InputImage(data=data, mime_type=mime_type)

    async def load_input_images(self, urls: list[str]) -> list[InputImage]:
        """
        Resolve input image URLs into bytes.

        Unreadable images are skipped; at least one must load.
        """
        images: list[InputImage] = []
        async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
            for url in urls:
                try:
                    images.append(await self._fetch_image(client, url))
                except (ValueError, httpx.HTTPError) as e:
                    logger.warning(f"Skipping input image {url[:80]}: {e}")

        if urls and not images:
            raise GenerationError(message="Failed to process input image")
        return images

    # ============ Result Handling ============

    @staticmethod
    def _error_for_result(result: GenerationResult) -> AppException:
        if result.safety_blocked:
            return ContentBlockedError(message=result.error)
        if result.error_type in (ERROR_TYPE_INVALID_KEY, ERROR_TYPE_RATE_LIMITED):
            return ExternalServiceError(message=result.error)
        return GenerationError(message=result.error)

    async def _store_image(self, result: GenerationResult) -> str:
        """Upload the image; fall back to an inline data URL if storage fails."""
        mime_type = result.mime_type or "image/png"
        try:
            stored = await self.storage.save_generated_image(result.image_data, mime_type)
            if stored.public_url:
                return stored.public_url
            logger.error("Storage returned no public URL, using data URL")
        except Exception as e:
            logger.error(f"Storage upload failed, using data URL: {e}")
        return to_data_url(result.image_data, mime_type)

    async def _fail(self, generation_id: UUID, message: str) -> None:
        """Persist the failed state in its own transaction."""
        await self.session.rollback()
        generation = await self.generations.get_by_id(generation_id)
        if generation is not None:
            await self.generations.mark_failed(generation, message)
            await self.session.commit()

    # ============ Generation ============

    async def generate(
        self,
        user: User,
        prompt: str,
        language: str = "en",
        generation_type: str = "text-to-image",
        input_images: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Generate one image and charge for it.

        Returns:
            Response payload (image_url, credits_used, remaining_credits,
            generation_id, message)
        """
        user_id = user.id
        cost = get_credits_for_generation_type(generation_type)

        check = await self.credits.check_credits(user_id, cost)
        if not check.has_credits:
            raise InsufficientCreditsError(
                message=translate("credits.insufficient", language),
                details={"required": cost, "credits": check.credits},
            )

        await self.enforce_cooldown(user_id)

        image_urls = list(input_images or []) if generation_type == "image-to-image" else []

        generation = await self.generations.create(
            user_id=user_id,
            prompt=prompt,
            generation_type=generation_type,
            credits_used=cost,
            input_images=input_images,
            status="processing",
        )
        generation_id = generation.id
        await self.session.commit()

        logger.info(f"Generation {generation_id} started: type={generation_type}, user={user_id}")

        # Generate and charge; every failure from here on marks the row failed
        try:
            images = await self.load_input_images(image_urls)

            result = await self.provider.generate(
                GenerationRequest(
                    prompt=prompt,
                    generation_type=generation_type,
                    input_images=images,
                    user_id=str(user_id),
                )
            )
            if not result.success:
                logger.warning(f"Generation {generation_id} failed: {result.error}")
                raise self._error_for_result(result)

            image_url = await self._store_image(result)

            try:
                deduction = await self.credits.deduct_credits(
                    user_id,
                    cost,
                    "usage",
                    description=f"Image generation: {generation_type}",
                    related_id=generation_id,
                )
                await self.session.commit()
            except InsufficientCreditsError:
                raise InsufficientCreditsError(
                    message=translate("credits.insufficient", language)
                )
        except AppException as e:
            await self._fail(generation_id, e.message)
            raise
        except Exception as e:
            logger.exception(f"Generation {generation_id} crashed")
            await self._fail(generation_id, str(e) or type(e).__name__)
            raise GenerationError() from e

        # Complete
        try:
            generation = await self.generations.get_by_id(generation_id)
            await self.generations.mark_completed(
                generation,
                output_image_url=image_url,
                metadata={"language": language, "model": result.model},
            )
            await self.session.commit()
        except Exception:
            logger.exception(f"Failed to complete generation {generation_id}, refunding")
            await self.session.rollback()
            await self.credits.refund(
                user_id,
                deduction,
                description=f"Refund for failed generation {generation_id}",
                related_id=generation_id,
            )
            await self.session.commit()
            await self._fail(generation_id, "Failed to save generation")
            raise GenerationError()

        logger.info(
            f"Generation {generation_id} completed in {result.duration:.2f}s, "
            f"charged {deduction.credits_charged} credits"
        )

        return {
            "image_url": image_url,
            "credits_used": deduction.credits_charged,
            "remaining_credits": deduction.new_balance,
            "free_attempts": deduction.free_attempts,
            "generation_id": generation_id,
            "message": translate("generation.success", language),
        }
