"""
Chat history router.

All of a user's generations live in one persistent conversation.

Endpoints:
- GET /api/chat/messages - Messages of a session (persistent by default)
- POST /api/chat/messages - Store a message
- DELETE /api/chat/messages - Clear a session
- GET /api/chat/sessions - List sessions
- POST /api/chat/sessions - Get the persistent session
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import (
    get_chat_repository,
    get_chat_session_service,
    get_generation_repository,
)
from api.schemas.chat import (
    ChatMessageInfo,
    ChatSessionInfo,
    CreateMessageRequest,
    CreateMessageResponse,
    DeleteMessagesResponse,
    GenerationSummary,
    ListSessionsResponse,
    MessagesResponse,
    PersistentSessionResponse,
)
from core.auth import require_current_user
from core.exceptions import BadRequestError
from database.models import MESSAGE_TYPES, ChatMessage, User
from database.repositories import ChatRepository, GenerationRepository
from services import ChatSessionService
from services.chat_session import SESSION_INFO

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


# ============ Helpers ============


def message_to_info(message: ChatMessage, include_generation: bool = False) -> ChatMessageInfo:
    """Convert database message to response model."""
    generation = None
    if include_generation and message.generation is not None:
        generation = GenerationSummary(
            id=message.generation.id,
            status=message.generation.status,
            output_image_url=message.generation.output_image_url,
            error_message=message.generation.error_message,
        )

    return ChatMessageInfo(
        id=message.id,
        session_id=message.session_id,
        message_type=message.message_type,
        content=message.content,
        prompt=message.prompt,
        image_url=message.image_url,
        input_images=message.input_images,
        generation_type=message.generation_type,
        generation_id=message.generation_id,
        credits_used=message.credits_used,
        error_message=message.error_message,
        metadata=message.extra_metadata,
        created_at=message.created_at,
        image_generations=generation,
    )


# ============ Message Endpoints ============


@router.get("/messages", response_model=MessagesResponse)
async def list_messages(
    session_id: UUID | None = Query(None, description="Defaults to the persistent session"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_current_user),
    chat_repo: ChatRepository = Depends(get_chat_repository),
    session_service: ChatSessionService = Depends(get_chat_session_service),
):
    """Load a session's messages, oldest first."""
    session_id = await session_service.resolve_session_id(user.id, session_id)

    messages = await chat_repo.list_messages(user.id, session_id, limit=limit, offset=offset)
    total = await chat_repo.count_messages(user.id, session_id)

    return MessagesResponse(
        messages=[message_to_info(m, include_generation=True) for m in messages],
        session_id=session_id,
        total=total,
    )


@router.post("/messages", response_model=CreateMessageResponse)
async def create_message(
    request: CreateMessageRequest,
    user: User = Depends(require_current_user),
    chat_repo: ChatRepository = Depends(get_chat_repository),
    generation_repo: GenerationRepository = Depends(get_generation_repository),
    session_service: ChatSessionService = Depends(get_chat_session_service),
):
    """Store a message in the given or persistent session."""
    if not request.message_type:
        raise BadRequestError(message="message_type is required")
    if request.message_type not in MESSAGE_TYPES:
        raise BadRequestError(
            message=f"message_type must be one of: {', '.join(MESSAGE_TYPES)}"
        )

    if request.generation_id is not None:
        generation = await generation_repo.get_owned(request.generation_id, user.id)
        if generation is None:
            raise BadRequestError(message="Unknown generation_id")

    session_id = await session_service.resolve_session_id(user.id, request.session_id)

    message = await chat_repo.create_message(
        user_id=user.id,
        session_id=session_id,
        message_type=request.message_type,
        content=request.content,
        prompt=request.prompt,
        image_url=request.image_url,
        input_images=request.input_images,
        generation_type=request.generation_type,
        generation_id=request.generation_id,
        credits_used=request.credits_used,
        error_message=request.error_message,
        metadata=request.metadata,
    )

    logger.info(
        f"Saved {request.message_type} message {message.id} in session {session_id}"
    )
    return CreateMessageResponse(message=message_to_info(message), session_id=session_id)


@router.delete("/messages", response_model=DeleteMessagesResponse)
async def delete_messages(
    session_id: UUID | None = Query(None),
    user: User = Depends(require_current_user),
    chat_repo: ChatRepository = Depends(get_chat_repository),
):
    """Delete all of the user's messages in a session."""
    if session_id is None:
        raise BadRequestError(message="session_id is required")

    deleted = await chat_repo.delete_session_messages(user.id, session_id)
    logger.info(f"Cleared {deleted} messages from session {session_id} for user {user.id}")

    return DeleteMessagesResponse(deleted=deleted)


# ============ Session Endpoints ============


@router.get("/sessions", response_model=ListSessionsResponse)
async def list_sessions(
    user: User = Depends(require_current_user),
    chat_repo: ChatRepository = Depends(get_chat_repository),
):
    """List the user's chat sessions, newest first."""
    sessions = await chat_repo.list_sessions(user.id)

    return ListSessionsResponse(
        sessions=[ChatSessionInfo(**s) for s in sessions],
        total=len(sessions),
    )


@router.post("/sessions", response_model=PersistentSessionResponse)
async def get_persistent_session(
    user: User = Depends(require_current_user),
    chat_repo: ChatRepository = Depends(get_chat_repository),
    session_service: ChatSessionService = Depends(get_chat_session_service),
):
    """Return the persistent session and its latest message."""
    session_id = await session_service.get_persistent_session_id(user.id)
    latest = await chat_repo.get_latest_message(user.id, session_id)

    return PersistentSessionResponse(
        session_id=session_id,
        message=message_to_info(latest) if latest else None,
        info=SESSION_INFO,
    )
