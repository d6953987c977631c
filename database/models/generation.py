"""
ImageGeneration model for storing image generation history.
"""

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

GENERATION_STATUSES = ("pending", "processing", "completed", "failed")
GENERATION_TYPES = ("text-to-image", "image-to-image")


class ImageGeneration(Base, TimestampMixin):
    """
    One request to produce an image.

    Status moves pending -> processing -> completed | failed.
    """

    __tablename__ = "image_generations"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Request
    prompt: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    input_images: Mapped[list[str] | None] = mapped_column(
        JSON,
        nullable=True,
    )
    generation_type: Mapped[str] = mapped_column(
        String(32),
        default="text-to-image",
        nullable=False,
    )

    # Result
    output_image_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    credits_used: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default="pending",
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # "metadata" is reserved on declarative classes
    extra_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ImageGeneration(id={self.id}, status={self.status}, type={self.generation_type})>"


# Indexes
Index("idx_image_generations_user_created", ImageGeneration.user_id, ImageGeneration.created_at)
Index("idx_image_generations_status", ImageGeneration.status)
