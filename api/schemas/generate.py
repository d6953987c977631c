"""
Image generation Pydantic schemas.
"""

from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class GenerationType(str, Enum):
    """Kind of generation."""

    TEXT_TO_IMAGE = "text-to-image"
    IMAGE_TO_IMAGE = "image-to-image"


class GenerateImageRequest(BaseModel):
    """Request body for image generation."""

    prompt: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="Text prompt describing the image",
    )
    language: Optional[str] = Field(
        None,
        description="Response language (en, cn, jp, kr, de, fr)",
    )
    generation_type: GenerationType = Field(
        default=GenerationType.TEXT_TO_IMAGE,
        description="text-to-image or image-to-image",
    )
    input_images: Optional[List[str]] = Field(
        None,
        max_length=4,
        description="Reference images as http(s) or data URLs",
    )


class GenerateImageResponse(BaseModel):
    """Response for a completed generation."""

    success: bool = True
    image_url: str
    credits_used: int
    remaining_credits: int
    free_attempts: int
    generation_id: UUID
    message: str
