"""
Supabase Storage provider.

The supabase client is synchronous; every call runs in the default
executor so uploads never block the event loop.
"""

import asyncio
import logging

from supabase import Client, create_client

from .base import StorageConfig, StorageObject, StorageObjectExistsError, StorageProvider

logger = logging.getLogger(__name__)

# Global client, created on first use
_client: Client | None = None


def get_supabase_client(config: StorageConfig) -> Client:
    """Lazy Supabase client initializer."""
    global _client

    if _client is not None:
        return _client

    if not config.supabase_url or not config.supabase_key:
        raise RuntimeError(
            "Supabase configuration missing. "
            "Required env vars: SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY"
        )

    _client = create_client(config.supabase_url, config.supabase_key)
    return _client


def _is_duplicate_error(error: Exception) -> bool:
    message = str(error).lower()
    return "duplicate" in message or "already exists" in message or "409" in message


class SupabaseStorageProvider(StorageProvider):
    """Supabase Storage buckets with public URLs."""

    def __init__(self, config: StorageConfig, client: Client | None = None):
        self.config = config
        self._client = client

    @property
    def name(self) -> str:
        return "supabase"

    @property
    def is_available(self) -> bool:
        return bool(self._client or (self.config.supabase_url and self.config.supabase_key))

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client(self.config)
        return self._client

    async def save(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str = "image/png",
        upsert: bool = False,
    ) -> StorageObject:
        """Upload bytes to a bucket."""
        file_options = {
            "content-type": content_type,
            "cache-control": "3600",
            "upsert": "true" if upsert else "false",
        }

        def upload():
            return self.client.storage.from_(bucket).upload(key, data, file_options)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, upload)
        except Exception as e:
            if _is_duplicate_error(e):
                raise StorageObjectExistsError(bucket, key) from e
            raise

        logger.debug(f"Uploaded to Supabase storage: {bucket}/{key}")

        return StorageObject(
            bucket=bucket,
            key=key,
            size=len(data),
            content_type=content_type,
            public_url=self.get_public_url(bucket, key),
        )

    async def load(self, bucket: str, key: str) -> bytes | None:
        """Download an object."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, lambda: self.client.storage.from_(bucket).download(key)
            )
        except Exception as e:
            logger.warning(f"Failed to download {bucket}/{key}: {e}")
            return None

    async def delete(self, bucket: str, key: str) -> bool:
        """Remove an object."""
        loop = asyncio.get_running_loop()
        removed = await loop.run_in_executor(
            None, lambda: self.client.storage.from_(bucket).remove([key])
        )
        return bool(removed)

    def get_public_url(self, bucket: str, key: str) -> str:
        """Bucket public URL for a key."""
        if self.config.public_url:
            return f"{self.config.public_url.rstrip('/')}/{bucket}/{key}"
        return self.client.storage.from_(bucket).get_public_url(key)
