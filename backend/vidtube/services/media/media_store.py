"""
Vidtube Media Store — uploads staged files to an S3-compatible object store
(MinIO by default) and deletes them again.

Flow for every multipart file:
 1. ``stage_upload`` streams the request part into ``temp_dir`` (size-capped)
 2. ``MediaStore.upload`` pushes it to the bucket
 3. the staged file is removed whatever happened in step 2

boto3 is blocking, so every call runs in a worker thread.
"""
from __future__ import annotations

import asyncio
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request, UploadFile

from vidtube.core.config import Settings
from vidtube.core.errors import PayloadTooLargeFault, UpstreamFault

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class MediaStoreConfig:
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    secure: bool = False
    public_base_url: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaStoreConfig":
        return cls(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            bucket=settings.minio_bucket,
            secure=settings.minio_secure,
            public_base_url=settings.media_public_base_url,
        )

    @property
    def endpoint_url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}"


@dataclass(frozen=True)
class UploadedMedia:
    url: str
    public_id: str
    size_bytes: int = 0
    content_type: Optional[str] = None


class MediaStore:
    """Thin async wrapper around a boto3 S3 client bound to one bucket."""

    def __init__(self, config: MediaStoreConfig, client: Any = None):
        self._config = config
        self._client = client or boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
        )

    @property
    def bucket(self) -> str:
        return self._config.bucket

    def public_url(self, public_id: str) -> str:
        base = (self._config.public_base_url or self._config.endpoint_url).rstrip("/")
        return f"{base}/{self._config.bucket}/{public_id}"

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self.bucket)
        except ClientError:
            await asyncio.to_thread(self._client.create_bucket, Bucket=self.bucket)
            logger.info(f"Created media bucket {self.bucket}")

    async def upload(self, local_path: Path | str, folder: str = "media") -> UploadedMedia:
        """Upload ``local_path`` and always remove it afterwards."""
        path = Path(local_path)
        try:
            key = f"{folder}/{uuid.uuid4().hex}{path.suffix.lower()}"
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            size = path.stat().st_size
            await asyncio.to_thread(
                self._client.upload_file,
                str(path),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
            logger.info(f"Uploaded {path.name} to {self.bucket}/{key} ({size} bytes)")
            return UploadedMedia(
                url=self.public_url(key),
                public_id=key,
                size_bytes=size,
                content_type=content_type,
            )
        except (BotoCoreError, ClientError, OSError) as exc:
            logger.error(f"Media upload failed for {path.name}: {exc}")
            raise UpstreamFault(message="Media upload failed") from exc
        finally:
            path.unlink(missing_ok=True)

    async def delete(self, public_id: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=public_id)
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Media delete failed for {public_id}: {exc}")
            raise UpstreamFault(message="Media delete failed") from exc


# ── Staging ──────────────────────────────────────────────────────────────

def has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


async def stage_upload(upload: UploadFile, settings: Settings) -> Path:
    """Stream a multipart file into ``temp_dir``; 413 past ``max_upload_bytes``."""
    temp_dir = Path(settings.temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    target = temp_dir / f"{uuid.uuid4().hex}{Path(upload.filename or '').suffix.lower()}"

    written = 0
    try:
        with target.open("wb") as fh:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > settings.max_upload_bytes:
                    raise PayloadTooLargeFault(
                        message=f"Uploaded file exceeds {settings.max_upload_bytes} bytes"
                    )
                fh.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()
    return target


async def store_upload(
    store: MediaStore,
    upload: UploadFile,
    settings: Settings,
    folder: str,
) -> UploadedMedia:
    staged = await stage_upload(upload, settings)
    return await store.upload(staged, folder=folder)


def get_media_store(request: Request) -> MediaStore:
    store = getattr(request.app.state, "media_store", None)
    if store is None:
        raise UpstreamFault(message="Media store is not configured")
    return store
