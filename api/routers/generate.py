"""
Image generation router.

Endpoints:
- POST /api/generate/image - Generate an image and charge credits
"""

import logging

from fastapi import APIRouter, Depends, Header

from api.dependencies import get_generation_service
from api.schemas.generate import GenerateImageRequest, GenerateImageResponse
from core.auth import require_current_user
from core.i18n import resolve_language
from database.models import User
from services import GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate", tags=["generation"])


@router.post("/image", response_model=GenerateImageResponse)
async def generate_image(
    request: GenerateImageRequest,
    user: User = Depends(require_current_user),
    generation_service: GenerationService = Depends(get_generation_service),
    accept_language: str | None = Header(None),
):
    """
    Generate an image with Gemini.

    Text-to-image costs 1 credit, image-to-image 2. A free attempt is used
    before paid credits. Nothing is charged when generation fails.
    """
    language = resolve_language(request.language, accept_language)

    result = await generation_service.generate(
        user,
        prompt=request.prompt,
        language=language,
        generation_type=request.generation_type.value,
        input_images=request.input_images,
    )

    return GenerateImageResponse(**result)
