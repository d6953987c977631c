"""
Chat message model for the persistent generation conversation.
"""

from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .generation import ImageGeneration

MESSAGE_TYPES = ("user", "assistant", "system")


class ChatMessage(Base, TimestampMixin):
    """
    Append-only conversation log entry.

    session_id groups messages; each user normally has exactly one
    long-lived session.
    """

    __tablename__ = "chat_messages"

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
    session_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        nullable=False,
    )

    # Message content
    message_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    content: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    prompt: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    image_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    input_images: Mapped[list[str] | None] = mapped_column(
        JSON,
        nullable=True,
    )

    # Generation link
    generation_type: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
    )
    generation_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("image_generations.id", ondelete="SET NULL"),
        nullable=True,
    )
    credits_used: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    extra_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    # Loaded explicitly with selectinload when listing history
    generation: Mapped[Optional["ImageGeneration"]] = relationship(
        "ImageGeneration",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<ChatMessage(id={self.id}, session={self.session_id}, type={self.message_type})>"


# Indexes
Index("idx_chat_messages_user_session", ChatMessage.user_id, ChatMessage.session_id)
Index("idx_chat_messages_user_created", ChatMessage.user_id, ChatMessage.created_at)
