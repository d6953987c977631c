"""
Image serving router.

Serves stored objects when the storage backend has no public URL
(e.g., local file system storage).
"""

import logging

from fastapi import APIRouter
from fastapi.responses import Response

from core.exceptions import NotFoundError
from services.storage import get_storage_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["images"])


def content_type_for(key: str) -> str:
    """Image content type from the key's extension (png by default)."""
    key_lower = key.lower()
    if key_lower.endswith((".jpg", ".jpeg")):
        return "image/jpeg"
    elif key_lower.endswith(".webp"):
        return "image/webp"
    elif key_lower.endswith(".gif"):
        return "image/gif"
    return "image/png"


@router.get("/{bucket}/{key:path}")
async def serve_image(bucket: str, key: str):
    """
    Serve an object from storage.

    Keys look like:
    - generated/{timestamp}-{random}.png in the images bucket
    - {user_id}/{purpose}/{uuid}.jpeg in the user-uploads bucket
    """
    storage = get_storage_manager()

    try:
        data = await storage.load(bucket, key)
    except ValueError:
        logger.warning(f"Rejected storage key: {bucket}/{key}")
        data = None

    if not data:
        raise NotFoundError(message="Image not found", error_code="image_not_found")

    filename = key.split("/")[-1]

    return Response(
        content=data,
        media_type=content_type_for(key),
        headers={
            "Cache-Control": "public, max-age=86400",  # 1 day cache
            "Content-Disposition": f'inline; filename="{filename}"',
        },
    )
