"""
Unified storage manager.

Routes saves to the configured backend and owns the key layout for
generated images and user uploads.
"""

import base64
import logging
import secrets
import string
import time
from uuid import UUID, uuid4

from .base import StorageConfig, StorageObject, StorageProvider

logger = logging.getLogger(__name__)

_KEY_ALPHABET = string.ascii_lowercase + string.digits


def extension_for_mime_type(mime_type: str | None) -> str:
    """File extension for an image MIME type ("image/jpeg" -> "jpeg")."""
    if not mime_type or "/" not in mime_type:
        return "png"
    return mime_type.split("/", 1)[1].split(";", 1)[0] or "png"


def to_data_url(data: bytes, mime_type: str) -> str:
    """Inline data URL for an image."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class StorageManager:
    """
    Unified storage manager.

    Key layout:
    - generated/{timestamp_ms}-{random}.{ext} in the generated-images bucket
    - {user_id}/{purpose}/{uuid}.{ext} in the uploads bucket
    """

    def __init__(self, config: StorageConfig, provider: StorageProvider | None = None):
        self.config = config
        self._provider = provider or self._create_provider()

    def _create_provider(self) -> StorageProvider:
        """Create storage provider based on configuration."""
        backend = self.config.backend.lower()

        if backend == "local":
            from .local import LocalStorageProvider

            return LocalStorageProvider(self.config)
        elif backend == "supabase":
            from .supabase_storage import SupabaseStorageProvider

            return SupabaseStorageProvider(self.config)
        else:
            raise ValueError(f"Unknown storage backend: {backend}")

    @property
    def provider(self) -> StorageProvider:
        """Get the underlying storage provider."""
        return self._provider

    @property
    def is_available(self) -> bool:
        return self._provider.is_available

    @staticmethod
    def generate_image_key(mime_type: str) -> str:
        """Key for a generated image."""
        timestamp = int(time.time() * 1000)
        suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(7))
        return f"generated/{timestamp}-{suffix}.{extension_for_mime_type(mime_type)}"

    @staticmethod
    def generate_upload_key(user_id: UUID | str, purpose: str, extension: str) -> str:
        """Key for a user upload."""
        return f"{user_id}/{purpose}/{uuid4()}.{extension}"

    async def save_generated_image(self, data: bytes, mime_type: str) -> StorageObject:
        """Store a generated image in the public images bucket."""
        key = self.generate_image_key(mime_type)
        logger.info(f"Saving generated image: {key} ({len(data)} bytes)")
        return await self._provider.save(
            self.config.generated_bucket, key, data, content_type=mime_type
        )

    async def save_user_upload(
        self,
        user_id: UUID | str,
        purpose: str,
        data: bytes,
        mime_type: str,
        extension: str,
    ) -> StorageObject:
        """
        Store a user upload.

        Raises:
            StorageObjectExistsError: the generated key is already taken
        """
        key = self.generate_upload_key(user_id, purpose, extension)
        return await self._provider.save(
            self.config.uploads_bucket, key, data, content_type=mime_type
        )

    async def load(self, bucket: str, key: str) -> bytes | None:
        return await self._provider.load(bucket, key)
