"""
Profile image storage on an S3-compatible object store.

boto3 is synchronous, so every call runs in a worker thread to keep the
event loop free.
"""

import asyncio
import logging
import os
from functools import lru_cache
from typing import Any, List, Optional
from uuid import UUID, uuid4

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from delivery_backend.config import Settings, get_settings
from delivery_backend.core.errors import StorageError, ValidationError


logger = logging.getLogger(__name__)


class ImageStorage:
    """Upload, delete and list images in a single bucket."""

    def __init__(self, settings: Optional[Settings] = None, client: Any = None) -> None:
        self.settings = settings or get_settings()
        self.bucket = self.settings.storage_bucket
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.settings.storage_endpoint,
                aws_access_key_id=self.settings.storage_access_key,
                aws_secret_access_key=self.settings.storage_secret_key,
                region_name=self.settings.storage_region,
                config=Config(s3={"addressing_style": "path"}),
            )
        return self._client

    def validate(self, content_type: Optional[str], size: int) -> None:
        """Reject files of the wrong type or over the size limit."""
        errors = []
        allowed = self.settings.allowed_image_types
        if content_type not in allowed:
            errors.append(f"Invalid file type. Allowed types: {', '.join(allowed)}")
        if size == 0:
            errors.append("No file provided")
        elif size > self.settings.max_file_size:
            max_mb = self.settings.max_file_size / 1024 / 1024
            errors.append(f"File too large. Maximum size: {max_mb:g}MB")
        if errors:
            raise ValidationError(", ".join(errors))

    def build_key(self, user_id: UUID, filename: Optional[str]) -> str:
        """Keys are grouped per user: ``<user_id>/<random><ext>``."""
        extension = os.path.splitext(filename or "")[1].lower()
        return f"{user_id}/{uuid4().hex}{extension}"

    def public_url(self, key: str) -> str:
        return f"{self.settings.storage_endpoint.rstrip('/')}/{self.bucket}/{key}"

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Recover the object key from a URL produced by ``public_url``."""
        if not url:
            return None
        prefix = self.public_url("")
        if url.startswith(prefix):
            return url[len(prefix):]
        # Fall back to the trailing <user_id>/<file> segments
        parts = url.rstrip("/").split("/")
        if len(parts) < 2:
            return None
        return "/".join(parts[-2:])

    async def upload(self, data: bytes, content_type: str, key: str) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Upload of %s failed: %s", key, exc)
            raise StorageError("Image upload failed") from exc
        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.delete_object,
                Bucket=self.bucket,
                Key=key,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Delete of %s failed: %s", key, exc)
            raise StorageError("Image deletion failed") from exc
        logger.info("Deleted %s", key)

    async def list_prefix(self, prefix: str) -> List[dict]:
        """List objects under ``prefix`` with their size and public URL."""
        try:
            response = await asyncio.to_thread(
                self.client.list_objects_v2,
                Bucket=self.bucket,
                Prefix=prefix,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Listing %s failed: %s", prefix, exc)
            raise StorageError("Image listing failed") from exc
        return [
            {
                "key": item["Key"],
                "name": item["Key"].split("/")[-1],
                "size": item.get("Size", 0),
                "last_modified": item.get("LastModified"),
                "url": self.public_url(item["Key"]),
            }
            for item in response.get("Contents", [])
        ]


@lru_cache()
def get_storage() -> ImageStorage:
    """Get cached storage instance."""
    return ImageStorage()
