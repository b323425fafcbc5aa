"""Public-read blob uploads to Amazon S3."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.services.errors import UpstreamError


class StorageError(UpstreamError):
    """Raised when the object store rejects or cannot receive an upload."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="502_STORAGE_UPSTREAM")


@dataclass(frozen=True)
class S3Target:
    region: str
    access_key_id: str
    secret_access_key: str
    bucket: str

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key.lstrip('/')}"


class S3Uploader:
    """Stores bytes under a key and returns the object's public URL."""

    def __init__(self, target: S3Target, *, client: Any | None = None) -> None:
        self._target = target
        if client is not None:
            self._client = client
            return
        try:
            self._client = boto3.client(
                "s3",
                region_name=target.region,
                aws_access_key_id=target.access_key_id,
                aws_secret_access_key=target.secret_access_key,
            )
        except (BotoCoreError, ValueError) as exc:
            raise StorageError(f"Failed to create S3 client: {exc}") from exc

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._target.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {key} to S3: {exc}") from exc
        return self._target.object_url(key)

    async def upload_screenshot(self, data: bytes, company_slug: str) -> str:
        key = f"startup-screenshots/{company_slug}-{int(time.time())}.png"
        return await self.put(key, data, "image/png")
