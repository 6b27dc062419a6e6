"""Abstract interface for object storage operations."""

import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, BinaryIO

from media_transcoder.domain.models import SourceLocation

CACHE_CONTROL = "max-age=31536000"  # 1 year (60 * 60 * 24 * 365)


class StorageAdapter(ABC):
    """Abstract base class for provider-specific storage backends."""

    # Directory the hosting environment ships ffmpeg/ffprobe in, if any.
    executable_dir: Path | None = None

    @abstractmethod
    def locate_source(self, event: Any) -> SourceLocation:
        """
        Decodes a provider's "object created" event into a source location.

        Must be pure: no I/O. Percent-escapes are decoded and "+" is read as a
        literal space.

        Args:
            event: The provider's notification payload.

        Returns:
            The bucket and un-escaped key of the created object.

        Raises:
            InvalidEventError: If the event does not describe an object.
        """

    @abstractmethod
    def iter_object(self, bucket_name: str, object_name: str) -> AsyncIterator[bytes]:
        """
        Streams an object's contents.

        The download is complete when the iterator is exhausted.

        Args:
            bucket_name: The storage bucket name.
            object_name: The object path/name in storage.

        Yields:
            Consecutive chunks of the object.

        Raises:
            StorageDownloadError: If the download fails.
        """

    @abstractmethod
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
        """
        Uploads an object with a one-year cache lifetime.

        Args:
            bucket_name: The destination bucket name.
            object_name: The destination path/name in storage.
            data: File-like object containing the data.
            size: Size of the data in bytes.
            content_type: MIME type of the object.
            content_encoding: Content-Encoding tag, sent only when given.
            metadata: User metadata stored alongside the object.
            sse: Server-side encryption mode, "AES256" or "aws:kms".
            sse_key_id: KMS key id, used with "aws:kms".

        Raises:
            StorageUploadError: If the upload fails.
        """

    def locate_executable(self, name: str, search_dir: Path | None = None) -> str:
        """
        Resolves where an external tool lives in this runtime.

        Args:
            name: The executable name, e.g. "ffmpeg".
            search_dir: Directory to look in first; defaults to executable_dir.

        Returns:
            The executable in the search directory if present, else a path
            found on PATH, else the bare name.
        """
        search_dir = search_dir or self.executable_dir
        if search_dir is not None:
            candidate = Path(search_dir) / name
            if os.access(candidate, os.X_OK):
                return str(candidate)
        return shutil.which(name) or name
