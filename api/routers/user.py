"""
User router for profile, credit ledger and generation history.

Endpoints:
- GET /api/user/profile - Current user profile
- PUT /api/user/profile - Update display name / language
- GET /api/user/credits - Credit transactions and summary
- GET /api/user/generations - Generation history
- DELETE /api/user/generations - Delete a generation
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import (
    get_credit_service,
    get_generation_repository,
    get_user_repository,
)
from api.schemas.auth import UserProfile, UserResponse
from api.schemas.common import MessageResponse
from api.schemas.user import (
    CreditHistoryResponse,
    CreditSummary,
    CreditTransactionInfo,
    GenerationInfo,
    GenerationListResponse,
    UpdateProfileRequest,
)
from core.auth import require_current_user
from core.exceptions import BadRequestError, GenerationNotFoundError, ValidationError
from core.i18n import SUPPORTED_LANGUAGES, is_supported_language
from database.models import ImageGeneration, User
from database.repositories import GenerationRepository, UserRepository
from services import CreditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


# ============ Helpers ============


def generation_to_info(generation: ImageGeneration) -> GenerationInfo:
    """Convert database generation to response model."""
    return GenerationInfo(
        id=generation.id,
        prompt=generation.prompt,
        generation_type=generation.generation_type,
        input_images=generation.input_images,
        output_image_url=generation.output_image_url,
        credits_used=generation.credits_used,
        status=generation.status,
        error_message=generation.error_message,
        metadata=generation.extra_metadata,
        created_at=generation.created_at,
    )


# ============ Profile ============


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: User = Depends(require_current_user)):
    """Get the current user's profile."""
    return UserResponse(user=UserProfile.model_validate(user))


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    request: UpdateProfileRequest,
    user: User = Depends(require_current_user),
    user_repo: UserRepository = Depends(get_user_repository),
):
    """Update display name and/or language."""
    updates = request.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise BadRequestError(message="No data to update")

    language = updates.get("language_code")
    if language is not None and not is_supported_language(language):
        raise ValidationError(
            message=f"Unsupported language: {language}",
            details={"supported": list(SUPPORTED_LANGUAGES)},
        )

    await user_repo.update(user, **updates)
    logger.info(f"Updated profile of user {user.id}: {sorted(updates)}")

    return UserResponse(user=UserProfile.model_validate(user))


# ============ Credits ============


@router.get("/credits", response_model=CreditHistoryResponse)
async def get_credit_history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    type: str | None = Query(None, description="Filter by transaction type"),
    user: User = Depends(require_current_user),
    credit_service: CreditService = Depends(get_credit_service),
):
    """Credit ledger page with balance summary."""
    history = await credit_service.get_history(
        user.id, limit=limit, offset=offset, transaction_type=type
    )

    return CreditHistoryResponse(
        transactions=[CreditTransactionInfo.model_validate(t) for t in history["transactions"]],
        summary=CreditSummary(**history["summary"]),
        total=history["total"],
        limit=limit,
        offset=offset,
    )


# ============ Generations ============


@router.get("/generations", response_model=GenerationListResponse)
async def list_generations(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status: str | None = Query(None, description="completed, processing or failed"),
    user: User = Depends(require_current_user),
    generation_repo: GenerationRepository = Depends(get_generation_repository),
):
    """Generation history, newest first."""
    generations = await generation_repo.list_by_user(
        user.id, status=status, limit=limit, offset=offset
    )
    total = await generation_repo.count_by_user(user.id, status=status)

    return GenerationListResponse(
        generations=[generation_to_info(g) for g in generations],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.delete("/generations", response_model=MessageResponse)
async def delete_generation(
    id: UUID | None = Query(None, description="Generation ID"),
    user: User = Depends(require_current_user),
    generation_repo: GenerationRepository = Depends(get_generation_repository),
):
    """Delete one of the user's generations."""
    if id is None:
        raise BadRequestError(message="Generation ID is required")

    generation = await generation_repo.get_owned(id, user.id)
    if generation is None:
        raise GenerationNotFoundError()

    await generation_repo.delete(generation)
    logger.info(f"Deleted generation {id} of user {user.id}")

    return MessageResponse(message="Generation deleted successfully")
