"""
FastAPI dependency injection for database sessions, repositories and services.
"""

import logging

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from core.i18n import language_from_header
from database import get_session
from database.repositories import (
    ChatRepository,
    GenerationRepository,
    SubscriptionRepository,
    UploadRepository,
    UserRepository,
)
from services import (
    AuthService,
    ChatSessionService,
    CreditService,
    GenerationService,
    StripeService,
    StripeWebhookHandler,
    SubscriptionService,
    get_stripe_service,
)

logger = logging.getLogger(__name__)


# ============ Repositories ============


async def get_user_repository(
    session: AsyncSession = Depends(get_session),
) -> UserRepository:
    """Get UserRepository dependency."""
    return UserRepository(session)


async def get_generation_repository(
    session: AsyncSession = Depends(get_session),
) -> GenerationRepository:
    """Get GenerationRepository dependency."""
    return GenerationRepository(session)


async def get_chat_repository(
    session: AsyncSession = Depends(get_session),
) -> ChatRepository:
    """Get ChatRepository dependency."""
    return ChatRepository(session)


async def get_subscription_repository(
    session: AsyncSession = Depends(get_session),
) -> SubscriptionRepository:
    """Get SubscriptionRepository dependency."""
    return SubscriptionRepository(session)


async def get_upload_repository(
    session: AsyncSession = Depends(get_session),
) -> UploadRepository:
    """Get UploadRepository dependency."""
    return UploadRepository(session)


# ============ Services ============


async def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)


async def get_credit_service(session: AsyncSession = Depends(get_session)) -> CreditService:
    return CreditService(session)


async def get_generation_service(
    session: AsyncSession = Depends(get_session),
) -> GenerationService:
    return GenerationService(session)


async def get_chat_session_service(
    session: AsyncSession = Depends(get_session),
) -> ChatSessionService:
    return ChatSessionService(session)


async def get_subscription_service(
    session: AsyncSession = Depends(get_session),
) -> SubscriptionService:
    return SubscriptionService(session)


def get_stripe() -> StripeService:
    """Stripe adapter dependency (overridable in tests)."""
    return get_stripe_service()


async def get_webhook_handler(
    session: AsyncSession = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe),
) -> StripeWebhookHandler:
    return StripeWebhookHandler(session, stripe_service)


# ============ Request Context ============


def get_request_language(accept_language: str | None = Header(None)) -> str:
    """Language from the Accept-Language header (en when absent)."""
    return language_from_header(accept_language)
