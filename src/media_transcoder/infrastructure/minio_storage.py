"""MinIO implementation of the StorageAdapter interface."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from threading import Thread
from typing import Any, BinaryIO

from minio import Minio
from minio.sse import Sse, SseKMS, SseS3

from media_transcoder.domain.models import SourceLocation
from media_transcoder.exceptions import StorageDownloadError, StorageUploadError
from media_transcoder.logging import setup_logging

from .interfaces import CACHE_CONTROL, StorageAdapter
from .notifications import parse_bucket_notification

logger = setup_logging()

DOWNLOAD_CHUNK_SIZE = 1024 * 1024


class UploadProgress(Thread):
    """
    Progress hook for Minio.put_object, which requires a Thread instance.

    The thread is never started; the SDK only calls set_meta() and update().
    Progress is logged every 25 percent.
    """

    def __init__(self):
        super().__init__(daemon=True)
        self.object_name = None
        self.total_length = 0
        self.uploaded = 0
        self._next_milestone = 25

    def set_meta(self, object_name, total_length):
        self.object_name = object_name
        self.total_length = total_length

    def update(self, size):
        self.uploaded += size
        if not self.total_length:
            return
        percent = 100 * self.uploaded // self.total_length
        if percent >= self._next_milestone:
            logger.info(
                "Upload progress",
                extra={
                    "object_name": self.object_name,
                    "loaded": self.uploaded,
                    "total": self.total_length,
                    "percent": percent,
                },
            )
            self._next_milestone = (percent // 25 + 1) * 25


class MinioStorageAdapter(StorageAdapter):
    """Handles object storage operations using MinIO or any S3-compatible endpoint."""

    def __init__(
        self,
        client: Minio,
        executable_dir: str | Path | None = None,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    ):
        self._client = client
        self.executable_dir = Path(executable_dir) if executable_dir else None
        self._chunk_size = chunk_size

    def locate_source(self, event: Any) -> SourceLocation:
        return parse_bucket_notification(event)

    async def iter_object(
        self, bucket_name: str, object_name: str
    ) -> AsyncIterator[bytes]:
        try:
            response = await asyncio.to_thread(
                self._client.get_object, bucket_name, object_name
            )
        except Exception as e:
            logger.exception(
                "MinIO download failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageDownloadError(object_name, e) from e

        received = 0
        try:
            while True:
                try:
                    chunk = await asyncio.to_thread(response.read, self._chunk_size)
                except Exception as e:
                    logger.exception(
                        "MinIO download interrupted",
                        extra={"bucket_name": bucket_name, "object_name": object_name},
                    )
                    raise StorageDownloadError(object_name, e) from e
                if not chunk:
                    break
                received += len(chunk)
                yield chunk
        finally:
            response.close()
            response.release_conn()

        logger.info(
            "File downloaded from MinIO",
            extra={
                "bucket_name": bucket_name,
                "object_name": object_name,
                "size": received,
            },
        )

    async def upload_object(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        size: int,
        content_type: str,
        content_encoding: str | None = None,
        metadata: dict[str, str] | None = None,
        sse: str | None = None,
        sse_key_id: str | None = None,
    ) -> None:
        # Standard headers are sent as-is by the SDK, anything else as x-amz-meta-*.
        headers = {"Cache-Control": CACHE_CONTROL}
        if content_encoding:
            headers["Content-Encoding"] = content_encoding
        headers.update(metadata or {})

        try:
            encryption = server_side_encryption(sse, sse_key_id)
            await asyncio.to_thread(
                self._client.put_object,
                bucket_name=bucket_name,
                object_name=object_name,
                data=data,
                length=size,
                content_type=content_type,
                metadata=headers,
                progress=UploadProgress(),
                sse=encryption,
            )
            logger.info(
                "File uploaded to MinIO",
                extra={
                    "bucket_name": bucket_name,
                    "object_name": object_name,
                    "content_type": content_type,
                    "size": size,
                },
            )
        except Exception as e:
            logger.exception(
                "MinIO upload failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageUploadError(object_name, e) from e


def server_side_encryption(sse: str | None, sse_key_id: str | None) -> Sse | None:
    """Maps an S3 ServerSideEncryption value onto the SDK's Sse objects."""
    if not sse:
        return None
    if sse == "AES256":
        return SseS3()
    if sse == "aws:kms":
        if not sse_key_id:
            raise ValueError("aws:kms encryption requires a key id")
        return SseKMS(sse_key_id, {})
    raise ValueError(f"unsupported server-side encryption {sse!r}")
