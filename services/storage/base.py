"""
Storage provider abstract base class and data types.

Objects are addressed by (bucket, key). The "images" bucket holds generated
images, "user-uploads" holds input images uploaded by users.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class StorageConfig:
    """Storage backend configuration."""

    # Backend type: local, supabase
    backend: str = "local"

    public_url: str | None = None  # CDN/public URL prefix

    # Supabase settings
    supabase_url: str | None = None
    supabase_key: str | None = None

    # Local storage settings
    local_path: str = "outputs/storage"

    # Buckets
    generated_bucket: str = "images"
    uploads_bucket: str = "user-uploads"


@dataclass
class StorageObject:
    """Storage object metadata."""

    bucket: str
    key: str  # Path inside the bucket
    size: int = 0  # Size in bytes
    content_type: str = "image/png"
    public_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class StorageObjectExistsError(Exception):
    """Raised when saving without upsert to a key that already exists."""

    def __init__(self, bucket: str, key: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object already exists: {bucket}/{key}")


class StorageProvider(ABC):
    """
    Abstract base class for storage backends.

    All storage providers must implement this interface.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name: local, supabase."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is configured and available."""
        pass

    @abstractmethod
    async def save(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str = "image/png",
        upsert: bool = False,
    ) -> StorageObject:
        """
        Save data to storage.

        Raises:
            StorageObjectExistsError: key exists and upsert is False
        """
        pass

    @abstractmethod
    async def load(self, bucket: str, key: str) -> bytes | None:
        """Load data from storage; None if not found."""
        pass

    @abstractmethod
    async def delete(self, bucket: str, key: str) -> bool:
        """Delete an object; True if something was removed."""
        pass

    @abstractmethod
    def get_public_url(self, bucket: str, key: str) -> str:
        """Public access URL for an object."""
        pass
