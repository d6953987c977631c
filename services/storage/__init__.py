"""
Pluggable storage system for NanoBanana.

Supports multiple storage backends:
- Local file system (development)
- Supabase Storage (production)

Usage:
    from services.storage import get_storage_manager

    storage = get_storage_manager()
    obj = await storage.save_generated_image(image_bytes, "image/png")
    print(obj.public_url)
"""

from .base import StorageConfig, StorageObject, StorageObjectExistsError, StorageProvider
from .local import LocalStorageProvider
from .manager import StorageManager, extension_for_mime_type, to_data_url

# Cached storage manager instance
_storage_manager: StorageManager | None = None


def get_storage_config() -> StorageConfig:
    """Build storage configuration from application settings."""
    from core.config import get_settings

    settings = get_settings()

    return StorageConfig(
        backend=settings.storage_backend,
        public_url=settings.storage_public_url,
        local_path=settings.local_storage_path,
        supabase_url=settings.supabase_url,
        supabase_key=settings.supabase_service_role_key,
        generated_bucket=settings.generated_images_bucket,
        uploads_bucket=settings.user_uploads_bucket,
    )


def get_storage_manager() -> StorageManager:
    """Get or create the storage manager."""
    global _storage_manager

    if _storage_manager is None:
        _storage_manager = StorageManager(get_storage_config())

    return _storage_manager


def clear_storage_cache():
    """Drop the cached storage manager (settings changed)."""
    global _storage_manager
    _storage_manager = None


__all__ = [
    # Core classes
    "StorageConfig",
    "StorageObject",
    "StorageObjectExistsError",
    "StorageProvider",
    "StorageManager",
    # Providers
    "LocalStorageProvider",
    # Helpers
    "extension_for_mime_type",
    "to_data_url",
    # Factory functions
    "get_storage_config",
    "get_storage_manager",
    "clear_storage_cache",
]
