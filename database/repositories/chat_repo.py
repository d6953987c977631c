"""
Chat repository for chat message CRUD operations.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import ChatMessage


class ChatRepository:
    """Repository for ChatMessage model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ============ Session Operations ============

    async def get_first_session_id(self, user_id: UUID) -> UUID | None:
        """Session id of the user's oldest message."""
        query = (
            select(ChatMessage.session_id)
            .where(ChatMessage.user_id == user_id)
            .order_by(ChatMessage.created_at)
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_sessions(self, user_id: UUID) -> list[dict[str, Any]]:
        """
        Group a user's messages into session summaries, newest first.

        Each summary describes the session's latest message.
        """
        query = (
            select(
                ChatMessage.session_id,
                ChatMessage.created_at,
                ChatMessage.content,
                ChatMessage.image_url,
            )
            .where(ChatMessage.user_id == user_id)
            .order_by(desc(ChatMessage.created_at))
        )
        result = await self.session.execute(query)

        sessions: dict[UUID, dict[str, Any]] = {}
        for row in result:
            summary = sessions.get(row.session_id)
            if summary is None:
                sessions[row.session_id] = {
                    "session_id": row.session_id,
                    "last_message_at": row.created_at,
                    "last_content": row.content or "Generated image",
                    "has_image": bool(row.image_url),
                    "message_count": 1,
                }
            else:
                summary["message_count"] += 1

        return list(sessions.values())

    async def delete_session_messages(self, user_id: UUID, session_id: UUID) -> int:
        """Delete the user's messages in a session; returns the row count."""
        stmt = delete(ChatMessage).where(
            ChatMessage.user_id == user_id,
            ChatMessage.session_id == session_id,
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    # ============ Message Operations ============

    async def create_message(
        self,
        user_id: UUID,
        session_id: UUID,
        message_type: str,
        content: str | None = None,
        prompt: str | None = None,
        image_url: str | None = None,
        input_images: list[str] | None = None,
        generation_type: str | None = None,
        generation_id: UUID | None = None,
        credits_used: int | None = None,
        error_message: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage:
        """Create a new chat message."""
        message = ChatMessage(
            user_id=user_id,
            session_id=session_id,
            message_type=message_type,
            content=content,
            prompt=prompt,
            image_url=image_url,
            input_images=input_images,
            generation_type=generation_type,
            generation_id=generation_id,
            credits_used=credits_used,
            error_message=error_message,
            extra_metadata=metadata,
        )
        self.session.add(message)
        await self.session.flush()
        return message

    async def list_messages(
        self,
        user_id: UUID,
        session_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ChatMessage]:
        """List messages in a session oldest first, with linked generations."""
        query = (
            select(ChatMessage)
            .where(ChatMessage.user_id == user_id, ChatMessage.session_id == session_id)
            .options(selectinload(ChatMessage.generation))
            .order_by(ChatMessage.created_at, ChatMessage.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_messages(self, user_id: UUID, session_id: UUID) -> int:
        """Count messages in a session."""
        query = select(func.count()).select_from(ChatMessage)
        query = query.where(ChatMessage.user_id == user_id, ChatMessage.session_id == session_id)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def get_latest_message(self, user_id: UUID, session_id: UUID) -> ChatMessage | None:
        """Newest message in a session."""
        query = (
            select(ChatMessage)
            .where(ChatMessage.user_id == user_id, ChatMessage.session_id == session_id)
            .order_by(desc(ChatMessage.created_at))
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
