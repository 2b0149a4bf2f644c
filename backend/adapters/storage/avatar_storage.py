"""
Where avatar images live: the local uploads directory or an S3 bucket.

Each user has one object per image format, ``avatars/<user_id>.<ext>``,
overwritten on re-upload. Returned URLs carry a ``?v=<unix time>`` suffix so
clients notice the replacement.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiofiles
import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

AVATAR_PREFIX = "avatars"

ALLOWED_AVATAR_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class StorageError(Exception):
    """The backend could not store the object."""


def avatar_key(user_id: str, content_type: str) -> str:
    """``avatars/<user_id>.<ext>`` with path separators neutralised in the id."""
    safe_id = user_id.replace("/", "_").replace("\\", "_").replace("..", "_")
    return f"{AVATAR_PREFIX}/{safe_id}.{ALLOWED_AVATAR_TYPES[content_type]}"


class StorageAdapter(ABC):
    @abstractmethod
    async def save_avatar(self, data: bytes, key: str, content_type: str) -> str:
        """Write ``data`` at ``key`` and return its versioned public URL."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Unversioned URL of ``key``."""

    def versioned_url(self, key: str) -> str:
        stamp = int(datetime.now(timezone.utc).timestamp())
        return f"{self.public_url(key)}?v={stamp}"


class LocalStorageAdapter(StorageAdapter):
    """Files under ``storage_local_path``, served by the ``/uploads`` static mount."""

    def __init__(self, base_path: Optional[str] = None, base_url: Optional[str] = None):
        self.base_path = Path(base_path or settings.storage_local_path)
        default_url = settings.storage_public_url or settings.frontend_url.replace(":3000", ":8000")
        self.base_url = (base_url or default_url).rstrip("/")

    async def save_avatar(self, data: bytes, key: str, content_type: str) -> str:
        target = self.base_path / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as out:
                await out.write(data)
        except OSError as e:
            logger.error("Writing avatar %s failed: %s", key, e)
            raise StorageError(f"Failed to save avatar: {e}") from e

        logger.info("Stored avatar %s (%d bytes)", key, len(data))
        return self.versioned_url(key)

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/uploads/{key}"


class S3StorageAdapter(StorageAdapter):
    """
    Objects in ``s3_bucket``.

    Explicit keys are used when both are configured; otherwise boto3 falls
    back to its default credential chain. ``storage_public_url`` replaces
    the bucket hostname when a CDN sits in front.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
    ):
        self.bucket = bucket or settings.s3_bucket
        self.region = region or settings.s3_region

        credentials = {}
        access_key = access_key or settings.s3_access_key
        secret_key = secret_key or settings.s3_secret_key
        if access_key and secret_key:
            credentials = {"aws_access_key_id": access_key, "aws_secret_access_key": secret_key}
        self.s3_client = boto3.client("s3", region_name=self.region, **credentials)

    async def save_avatar(self, data: bytes, key: str, content_type: str) -> str:
        if not self.bucket:
            raise StorageError("S3 bucket not configured.")

        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=300",
            )
        except NoCredentialsError as e:
            logger.error("No AWS credentials available for avatar upload")
            raise StorageError("AWS credentials not configured") from e
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 rejected avatar %s: %s", key, e)
            raise StorageError(f"Failed to upload to S3: {e}") from e

        logger.info("Stored avatar %s in bucket %s", key, self.bucket)
        return self.versioned_url(key)

    def public_url(self, key: str) -> str:
        if settings.storage_public_url:
            return f"{settings.storage_public_url.rstrip('/')}/{key}"
        host = f"{self.bucket}.s3.{self.region}.amazonaws.com" if self.region else f"{self.bucket}.s3.amazonaws.com"
        return f"https://{host}/{key}"


_ADAPTERS = {
    "local": LocalStorageAdapter,
    "s3": S3StorageAdapter,
}


def get_storage_adapter() -> StorageAdapter:
    """Adapter selected by ``STORAGE_TYPE``; raises ValueError for unknown values."""
    storage_type = settings.storage_type.lower()
    if storage_type not in _ADAPTERS:
        raise ValueError(f"Unknown storage type: {storage_type}. Must be 'local' or 's3'")
    return _ADAPTERS[storage_type]()


storage_adapter = get_storage_adapter()


def get_avatar_storage() -> StorageAdapter:
    return storage_adapter
