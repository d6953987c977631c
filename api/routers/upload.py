"""
Image upload router.

Endpoints:
- POST /api/upload/image - Upload an input image for editing
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.exc import SQLAlchemyError

from api.dependencies import get_request_language, get_upload_repository
from api.schemas.upload import UploadImageResponse
from core.auth import require_current_user
from core.config import get_settings
from core.exceptions import BadRequestError, StorageError
from core.i18n import translate
from database.models import User
from database.repositories import UploadRepository
from services.storage import (
    StorageManager,
    StorageObject,
    StorageObjectExistsError,
    extension_for_mime_type,
    get_storage_manager,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])


async def _save_upload(
    storage: StorageManager,
    user_id: str,
    purpose: str,
    data: bytes,
    mime_type: str,
) -> StorageObject:
    """Save an upload, retrying once under "{purpose}-retry" on a key collision."""
    extension = extension_for_mime_type(mime_type)
    try:
        return await storage.save_user_upload(user_id, purpose, data, mime_type, extension)
    except StorageObjectExistsError as e:
        logger.warning(f"Upload key collision ({e.key}), retrying")
        return await storage.save_user_upload(
            user_id, f"{purpose}-retry", data, mime_type, extension
        )


@router.post("/image", response_model=UploadImageResponse)
async def upload_image(
    file: UploadFile | None = File(None),
    purpose: str = Form("input"),
    user: User = Depends(require_current_user),
    upload_repo: UploadRepository = Depends(get_upload_repository),
    language: str = Depends(get_request_language),
):
    """
    Upload an image to the user-uploads bucket.

    Returns the public URL to pass as an input image to /api/generate/image.
    """
    settings = get_settings()

    if file is None:
        raise BadRequestError(message="No file provided")

    mime_type = file.content_type or ""
    if mime_type not in settings.upload_allowed_types:
        raise BadRequestError(
            message=(
                "Invalid file type. Only "
                f"{', '.join(settings.upload_allowed_types)} are allowed."
            )
        )

    data = await file.read()
    if len(data) > settings.upload_max_size:
        raise BadRequestError(
            message=f"File too large. Maximum size is {settings.upload_max_size // (1024 * 1024)}MB."
        )

    logger.info(
        f"Upload from user {user.id}: {file.filename} ({mime_type}, {len(data)} bytes, {purpose})"
    )

    storage = get_storage_manager()
    try:
        stored = await _save_upload(storage, str(user.id), purpose, data, mime_type)
    except Exception as e:
        logger.error(f"Storage upload failed for user {user.id}: {e}")
        raise StorageError(
            message="Failed to upload image. Please try again.",
            details={"reason": str(e)},
        ) from e

    image_id = None
    try:
        # Savepoint so a failed insert leaves the request session usable
        async with upload_repo.session.begin_nested():
            record = await upload_repo.create(
                user_id=user.id,
                file_name=file.filename,
                file_size=len(data),
                mime_type=mime_type,
                storage_path=stored.key,
                public_url=stored.public_url,
            )
        image_id = record.id
    except SQLAlchemyError as e:
        logger.error(f"Failed to record upload {stored.key}: {e}")

    logger.info(f"Uploaded {stored.bucket}/{stored.key} for user {user.id}")

    return UploadImageResponse(
        image_url=stored.public_url,
        image_id=image_id,
        message=translate("upload.success", language),
    )
