"""
Chat history Pydantic schemas.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class GenerationSummary(BaseModel):
    """Generation linked to a chat message."""

    id: UUID
    status: str
    output_image_url: Optional[str] = None
    error_message: Optional[str] = None


class ChatMessageInfo(BaseModel):
    """A stored chat message."""

    id: UUID
    session_id: UUID
    message_type: str
    content: Optional[str] = None
    prompt: Optional[str] = None
    image_url: Optional[str] = None
    input_images: Optional[list[str]] = None
    generation_type: Optional[str] = None
    generation_id: Optional[UUID] = None
    credits_used: Optional[int] = None
    error_message: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime
    image_generations: Optional[GenerationSummary] = None


class CreateMessageRequest(BaseModel):
    """Request to store a chat message."""

    message_type: Optional[str] = Field(None, description="user, assistant or system")
    session_id: Optional[UUID] = Field(None, description="Defaults to the persistent session")
    content: Optional[str] = None
    prompt: Optional[str] = None
    image_url: Optional[str] = None
    input_images: Optional[list[str]] = None
    generation_type: Optional[str] = None
    generation_id: Optional[UUID] = None
    credits_used: Optional[int] = Field(None, ge=0)
    error_message: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class MessagesResponse(BaseModel):
    """Messages of one session."""

    success: bool = True
    messages: list[ChatMessageInfo] = Field(default_factory=list)
    session_id: UUID
    total: int = 0


class CreateMessageResponse(BaseModel):
    """Response after storing a message."""

    success: bool = True
    message: ChatMessageInfo
    session_id: UUID


class DeleteMessagesResponse(BaseModel):
    """Response after clearing a session."""

    success: bool = True
    message: str = "Chat history cleared successfully"
    deleted: int = 0


class ChatSessionInfo(BaseModel):
    """Summary of a chat session."""

    session_id: UUID
    last_message_at: datetime
    last_content: str
    has_image: bool
    message_count: int


class ListSessionsResponse(BaseModel):
    """Chat sessions of the current user."""

    success: bool = True
    sessions: list[ChatSessionInfo] = Field(default_factory=list)
    total: int = 0


class PersistentSessionResponse(BaseModel):
    """The user's persistent session."""

    success: bool = True
    session_id: UUID
    message: Optional[ChatMessageInfo] = None
    info: str
