"""
User profile, credit history and generation history schemas.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UpdateProfileRequest(BaseModel):
    """Editable profile fields."""

    display_name: Optional[str] = Field(None, max_length=255)
    language_code: Optional[str] = Field(None, description="en, cn, jp, kr, de, fr")


class CreditTransactionInfo(BaseModel):
    """One ledger row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: int
    balance_after: int
    transaction_type: str
    description: Optional[str] = None
    related_id: Optional[UUID] = None
    created_at: datetime


class CreditSummary(BaseModel):
    current_balance: int
    free_attempts: int
    total_earned: int
    total_spent: int


class CreditHistoryResponse(BaseModel):
    success: bool = True
    transactions: list[CreditTransactionInfo] = Field(default_factory=list)
    summary: CreditSummary
    total: int = 0
    limit: int
    offset: int


class GenerationInfo(BaseModel):
    """A stored image generation."""

    id: UUID
    prompt: str
    generation_type: str
    input_images: Optional[list[str]] = None
    output_image_url: Optional[str] = None
    credits_used: int
    status: str
    error_message: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime


class GenerationListResponse(BaseModel):
    success: bool = True
    generations: list[GenerationInfo] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int
