"""
Document Storage

S3-compatible object storage (AWS S3 or MinIO) for uploaded documents.
The boto3 client is synchronous, so every call runs in the default
thread-pool executor.

A single StorageService is created in the application lifespan and handed
to request handlers through the ``get_storage`` dependency.
"""

import asyncio
import logging
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from coop_portal.core.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the object store rejects or fails an operation."""


class StorageService:
    """Thin async wrapper around a boto3 S3 client bound to one bucket."""

    def __init__(
        self,
        bucket: str,
        endpoint: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
    ):
        self.bucket = bucket
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
        )

    async def _run(self, func, **kwargs):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, **kwargs))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Storage operation {func.__name__} failed: {e}", exc_info=True)
            raise StorageError(str(e)) from e

    async def check_bucket(self) -> None:
        """Raise StorageError when the bucket cannot be reached."""
        await self._run(self._client.head_bucket, Bucket=self.bucket)

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            await self._run(self._client.head_bucket, Bucket=self.bucket)
        except StorageError:
            logger.info(f"Creating storage bucket: {self.bucket}")
            await self._run(self._client.create_bucket, Bucket=self.bucket)

    async def upload_file(self, file_data: bytes, object_key: str, content_type: str) -> str:
        """Upload bytes and return the object key (the stored path)."""
        await self._run(
            self._client.put_object,
            Bucket=self.bucket,
            Key=object_key,
            Body=file_data,
            ContentType=content_type,
        )
        return object_key

    async def download_file(self, object_key: str) -> bytes:
        response = await self._run(self._client.get_object, Bucket=self.bucket, Key=object_key)
        return response["Body"].read()

    async def get_download_url(self, object_key: str, expires_in: int) -> str:
        """Return a presigned GET URL valid for ``expires_in`` seconds."""
        return await self._run(
            self._client.generate_presigned_url,
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": object_key},
            ExpiresIn=expires_in,
        )

    async def delete_file(self, object_key: str) -> None:
        await self._run(self._client.delete_object, Bucket=self.bucket, Key=object_key)


_service: StorageService | None = None


def init_storage(cfg: Settings) -> StorageService:
    """Create the StorageService singleton (called once from the lifespan)."""
    global _service
    _service = StorageService(
        bucket=cfg.storage_bucket,
        endpoint=cfg.s3_endpoint,
        access_key=cfg.s3_access_key,
        secret_key=cfg.s3_secret_key,
        region=cfg.s3_region,
    )
    logger.info(f"StorageService initialised (bucket={cfg.storage_bucket})")
    return _service


def get_storage() -> StorageService:
    """FastAPI dependency returning the initialised StorageService."""
    if _service is None:
        raise RuntimeError("StorageService not initialised -- call init_storage() first")
    return _service
