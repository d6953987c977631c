"""
Persistent chat session resolution.

A user has one continuous conversation. Its id is the session_id of the
user's first stored message. Until that message exists, a freshly minted
id is parked in Redis so concurrent callers agree on the same session.
"""

import logging
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from core.redis import get_redis
from database.repositories import ChatRepository

logger = logging.getLogger(__name__)

SESSION_KEY = "chat:persistent_session:{user_id}"
# Parked ids only matter until the first message is stored
SESSION_TTL_SECONDS = 24 * 3600
SESSION_INFO = "Using persistent session - all messages stay in one continuous conversation"


class ChatSessionService:
    """Resolves the persistent chat session of a user."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ChatRepository(session)

    async def get_persistent_session_id(self, user_id: UUID) -> UUID:
        """Return the user's persistent session id, minting one if needed."""
        existing = await self.repo.get_first_session_id(user_id)
        if existing is not None:
            return existing

        redis = await get_redis()
        key = SESSION_KEY.format(user_id=user_id)
        candidate = str(uuid4())

        # First writer wins; everyone else reads the stored id
        if await redis.set(key, candidate, ex=SESSION_TTL_SECONDS, nx=True):
            logger.info(f"Minted persistent chat session {candidate} for user {user_id}")
            return UUID(candidate)

        stored = await redis.get(key)
        return UUID(stored) if stored else UUID(candidate)

    async def resolve_session_id(self, user_id: UUID, session_id: UUID | None) -> UUID:
        """Use the explicit session id when given, else the persistent one."""
        if session_id is not None:
            return session_id
        return await self.get_persistent_session_id(user_id)
