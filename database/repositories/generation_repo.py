"""
Generation repository for image generation records.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import ImageGeneration


class GenerationRepository:
    """Repository for ImageGeneration model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, generation_id: UUID) -> ImageGeneration | None:
        """Get generation by ID."""
        result = await self.session.execute(
            select(ImageGeneration).where(ImageGeneration.id == generation_id)
        )
        return result.scalar_one_or_none()

    async def get_owned(self, generation_id: UUID, user_id: UUID) -> ImageGeneration | None:
        """Get a generation only if it belongs to the user."""
        result = await self.session.execute(
            select(ImageGeneration).where(
                ImageGeneration.id == generation_id,
                ImageGeneration.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        user_id: UUID,
        prompt: str,
        generation_type: str,
        credits_used: int,
        input_images: list[str] | None = None,
        status: str = "processing",
    ) -> ImageGeneration:
        """Create a new generation record."""
        generation = ImageGeneration(
            user_id=user_id,
            prompt=prompt,
            generation_type=generation_type,
            credits_used=credits_used,
            input_images=input_images or [],
            status=status,
        )
        self.session.add(generation)
        await self.session.flush()
        return generation

    async def mark_completed(
        self,
        generation: ImageGeneration,
        output_image_url: str,
        metadata: dict[str, Any] | None = None,
    ) -> ImageGeneration:
        """Store the result of a successful generation."""
        generation.status = "completed"
        generation.output_image_url = output_image_url
        generation.error_message = None
        generation.extra_metadata = metadata
        await self.session.flush()
        return generation

    async def mark_failed(
        self,
        generation: ImageGeneration,
        error_message: str,
    ) -> ImageGeneration:
        """Record why a generation failed."""
        generation.status = "failed"
        generation.error_message = error_message
        await self.session.flush()
        return generation

    async def list_by_user(
        self,
        user_id: UUID,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ImageGeneration]:
        """List a user's generations newest first."""
        query = select(ImageGeneration).where(ImageGeneration.user_id == user_id)

        if status:
            query = query.where(ImageGeneration.status == status)

        query = query.order_by(desc(ImageGeneration.created_at))
        query = query.limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_user(self, user_id: UUID, status: str | None = None) -> int:
        """Count a user's generations."""
        query = select(func.count()).select_from(ImageGeneration)
        query = query.where(ImageGeneration.user_id == user_id)

        if status:
            query = query.where(ImageGeneration.status == status)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def delete(self, generation: ImageGeneration) -> None:
        """Delete a generation (linked chat messages keep a NULL reference)."""
        await self.session.delete(generation)
        await self.session.flush()
