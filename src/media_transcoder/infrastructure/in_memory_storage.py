"""Dict-backed implementation of the StorageAdapter interface."""

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, BinaryIO

from pydantic import BaseModel

from media_transcoder.domain.models import SourceLocation
from media_transcoder.exceptions import (
    InvalidEventError,
    StorageDownloadError,
    StorageUploadError,
)

from .interfaces import CACHE_CONTROL, StorageAdapter
from .notifications import parse_bucket_notification


class StoredObject(BaseModel, frozen=True):
    """An object held by the in-memory store, with the headers it was written with."""

    data: bytes
    content_type: str | None = None
    content_encoding: str | None = None
    cache_control: str | None = None
    metadata: dict[str, str] = {}
    sse: str | None = None
    sse_key_id: str | None = None


class InMemoryStorageAdapter(StorageAdapter):
    """
    Keeps objects in a dict keyed by (bucket, key).

    Accepts either S3-format notifications or plain {"bucket", "key"} events.
    Setting fail_downloads / fail_uploads makes the corresponding calls raise
    the same errors a real backend would.
    """

    def __init__(
        self,
        executable_dir: str | Path | None = None,
        chunk_size: int = 64 * 1024,
    ):
        self.objects: dict[tuple[str, str], StoredObject] = {}
        self.uploads: list[tuple[str, str]] = []
        self.executable_dir = Path(executable_dir) if executable_dir else None
        self.fail_downloads = False
        self.fail_uploads = False
        self._chunk_size = chunk_size

    def put(self, bucket_name: str, object_name: str, data: bytes) -> None:
        """Seeds an object without recording it as an upload."""
        self.objects[(bucket_name, object_name)] = StoredObject(data=data)

    def get(self, bucket_name: str, object_name: str) -> StoredObject:
        return self.objects[(bucket_name, object_name)]

    def locate_source(self, event: Any) -> SourceLocation:
        if isinstance(event, dict) and "Records" not in event:
            try:
                return SourceLocation(bucket=event["bucket"], key=event["key"])
            except (KeyError, ValueError) as e:
                raise InvalidEventError("event needs 'bucket' and 'key'", e) from e
        return parse_bucket_notification(event)

    async def iter_object(
        self, bucket_name: str, object_name: str
    ) -> AsyncIterator[bytes]:
        if self.fail_downloads:
            raise StorageDownloadError(object_name, ConnectionError("download refused"))
        try:
            data = self.objects[(bucket_name, object_name)].data
        except KeyError as e:
            raise StorageDownloadError(object_name, e) from e

        for start in range(0, len(data), self._chunk_size):
            yield data[start : start + self._chunk_size]

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
        if self.fail_uploads:
            raise StorageUploadError(object_name, ConnectionError("upload refused"))

        body = data.read()
        if len(body) != size:
            raise StorageUploadError(
                object_name, ValueError(f"expected {size} bytes, read {len(body)}")
            )
        self.objects[(bucket_name, object_name)] = StoredObject(
            data=body,
            content_type=content_type,
            content_encoding=content_encoding,
            cache_control=CACHE_CONTROL,
            metadata=dict(metadata or {}),
            sse=sse,
            sse_key_id=sse_key_id,
        )
        self.uploads.append((bucket_name, object_name))
