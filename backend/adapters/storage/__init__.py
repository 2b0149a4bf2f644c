"""Storage adapters for user avatars."""

from .avatar_storage import (
    ALLOWED_AVATAR_TYPES,
    LocalStorageAdapter,
    S3StorageAdapter,
    StorageAdapter,
    StorageError,
    avatar_key,
    get_avatar_storage,
    get_storage_adapter,
    storage_adapter,
)

__all__ = [
    "ALLOWED_AVATAR_TYPES",
    "StorageAdapter",
    "StorageError",
    "LocalStorageAdapter",
    "S3StorageAdapter",
    "avatar_key",
    "get_avatar_storage",
    "get_storage_adapter",
    "storage_adapter",
]
