"""Upload storage backed by an S3-compatible object store (MinIO).

``UploadStorage`` is the two-method contract the upload route depends on;
``S3UploadStorage`` implements it with boto3.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional
from uuid import uuid4

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from loguru import logger
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .core.exceptions import UploadFailed


@dataclass(frozen=True)
class StoredObject:
    """Where an uploaded file ended up."""
    bucket: str
    key: str
    etag: Optional[str] = None
    version_id: Optional[str] = None


class UploadStorage(ABC):
    """Storage backend for uploaded files."""

    @abstractmethod
    async def store(self, upload: UploadFile) -> StoredObject:
        """Persist an upload under a fresh random key."""

    @abstractmethod
    async def remove(self, stored: StoredObject) -> None:
        """Delete a previously stored object."""


def new_object_key() -> str:
    """Random object key; uuid4 draws from os.urandom."""
    return str(uuid4())


class S3UploadStorage(UploadStorage):
    """Stores each upload as a single object in one bucket."""

    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            await run_in_threadpool(self.client.head_bucket, Bucket=self.bucket)
            return
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code not in ("404", "NoSuchBucket", "NotFound"):
                raise
        await run_in_threadpool(self.client.create_bucket, Bucket=self.bucket)
        logger.info(f"Created bucket {self.bucket}")

    async def store(self, upload: UploadFile) -> StoredObject:
        key = new_object_key()
        extra = {}
        if upload.content_type:
            extra["ContentType"] = upload.content_type

        try:
            result = await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=upload.file,
                **extra,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {upload.filename!r} to {self.bucket}/{key} failed: {e}")
            raise UploadFailed(str(e), bucket=self.bucket, key=key) from e

        return StoredObject(
            bucket=self.bucket,
            key=key,
            etag=result.get("ETag"),
            version_id=result.get("VersionId"),
        )

    async def remove(self, stored: StoredObject) -> None:
        try:
            await run_in_threadpool(
                self.client.delete_object, Bucket=stored.bucket, Key=stored.key
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Removal of {stored.bucket}/{stored.key} failed: {e}")
            raise UploadFailed(str(e), bucket=stored.bucket, key=stored.key) from e
        logger.debug(f"Removed {stored.bucket}/{stored.key}")


def create_s3_client(settings: Settings) -> Any:
    """boto3 S3 client for the configured MinIO endpoint."""
    return boto3.client(
        "s3",
        endpoint_url=settings.blob_endpoint,
        aws_access_key_id=settings.BLOB_USER,
        aws_secret_access_key=settings.BLOB_PASSWORD,
        region_name="us-east-1",
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )
