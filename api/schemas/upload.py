"""
Upload Pydantic schemas.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class UploadImageResponse(BaseModel):
    """Response for an uploaded image."""

    success: bool = True
    image_url: str
    image_id: Optional[UUID] = None
    message: str
