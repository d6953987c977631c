"""
Local file system storage provider.

Stores objects under {local_path}/{bucket}/{key}. Files are served back
through the /api/images proxy unless a public URL prefix is configured.
Suitable for development and single-server deployments.
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from .base import StorageConfig, StorageObject, StorageObjectExistsError, StorageProvider

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):
    """Local file system storage provider."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self.base_path = Path(config.local_path).resolve()
        self._public_url = config.public_url

        # Ensure base directory exists
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def name(self) -> str:
        return "local"

    @property
    def is_available(self) -> bool:
        return True

    def _get_full_path(self, bucket: str, key: str) -> Path:
        """Resolve an object path, refusing keys that escape the base directory."""
        path = (self.base_path / bucket / key).resolve()
        if not path.is_relative_to(self.base_path):
            raise ValueError(f"Invalid storage key: {bucket}/{key}")
        return path

    async def save(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str = "image/png",
        upsert: bool = False,
    ) -> StorageObject:
        """Save data to the local file system."""
        file_path = self._get_full_path(bucket, key)

        if not upsert and file_path.exists():
            raise StorageObjectExistsError(bucket, key)

        await aiofiles.os.makedirs(file_path.parent, exist_ok=True)

        async with aiofiles.open(file_path, "wb") as f:
            await f.write(data)

        logger.debug(f"Saved file to local storage: {bucket}/{key}")

        return StorageObject(
            bucket=bucket,
            key=key,
            size=len(data),
            content_type=content_type,
            public_url=self.get_public_url(bucket, key),
        )

    async def load(self, bucket: str, key: str) -> bytes | None:
        """Load data from the local file system."""
        file_path = self._get_full_path(bucket, key)

        if not file_path.is_file():
            return None

        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def delete(self, bucket: str, key: str) -> bool:
        """Delete a file from local storage."""
        file_path = self._get_full_path(bucket, key)

        if not file_path.is_file():
            return False

        await aiofiles.os.remove(file_path)
        logger.debug(f"Deleted file from local storage: {bucket}/{key}")
        return True

    def get_public_url(self, bucket: str, key: str) -> str:
        """Public URL if configured, otherwise the API proxy path."""
        if self._public_url:
            return f"{self._public_url.rstrip('/')}/{bucket}/{key}"
        return f"/api/images/{bucket}/{key}"
