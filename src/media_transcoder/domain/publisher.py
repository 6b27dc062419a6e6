"""Uploads derivative files to the destination bucket."""

import asyncio
import gzip
import hashlib
import shutil
from pathlib import Path

from media_transcoder.config import PipelineConfig
from media_transcoder.domain.models import LocalArtifact, PublishedDerivative
from media_transcoder.exceptions import UnknownMimeTypeError
from media_transcoder.infrastructure.interfaces import StorageAdapter
from media_transcoder.logging import setup_logging
from media_transcoder.utils import file_extension

logger = setup_logging()

GZIP_SUFFIX = ".gzip"
_HASH_CHUNK_SIZE = 1024 * 1024


class ArtifactPublisher:
    """Compresses (optionally), uploads, and deletes every derivative concurrently."""

    def __init__(self, storage: StorageAdapter, config: PipelineConfig):
        self._storage = storage
        self._config = config

    async def publish(
        self, output_dir: Path, key_prefix: str
    ) -> tuple[PublishedDerivative, ...]:
        """
        Publishes every file the codec tool left in output_dir.

        Each file is handled by its own concurrent unit. All units are allowed
        to settle before returning, so no upload is still running when the
        caller starts cleaning up.

        Args:
            output_dir: Directory populated by the transcoder.
            key_prefix: Naming root for the destination keys.

        Returns:
            One PublishedDerivative per file, in file name order.

        Raises:
            UnknownMimeTypeError: If a file's extension has no MIME mapping.
            StorageUploadError: If an upload fails.
            OSError: If a local file cannot be read, compressed, or deleted.
            The first error raised by any unit is re-raised unchanged.
        """
        files = sorted(path for path in output_dir.iterdir() if path.is_file())
        logger.info(
            "Publishing derivatives",
            extra={
                "count": len(files),
                "files": [path.name for path in files],
                "bucket_name": self._config.destination_bucket,
            },
        )
        if not files:
            logger.warning("Transcoder produced no output files", extra={"output_dir": str(output_dir)})

        failures: list[Exception] = []

        async def run_unit(path: Path) -> PublishedDerivative:
            try:
                return await self._publish_one(path, key_prefix)
            except Exception as e:
                failures.append(e)
                raise

        results = await asyncio.gather(
            *(run_unit(path) for path in files), return_exceptions=True
        )
        if failures:
            logger.error(
                "Publishing failed",
                extra={"failed_units": len(failures), "error": str(failures[0])},
            )
            raise failures[0]
        return tuple(results)

    async def _publish_one(self, path: Path, key_prefix: str) -> PublishedDerivative:
        extension = file_extension(path.name)
        mime_type = self._config.mime_types.get(extension) if extension else None
        if mime_type is None:
            raise UnknownMimeTypeError(path.name, extension)

        artifacts = [LocalArtifact(path=path, extension=extension, mime_type=mime_type)]
        body_path = path
        content_encoding = None

        if self._config.use_gzip:
            body_path = path.with_name(path.name + GZIP_SUFFIX)
            artifacts.append(
                LocalArtifact(path=body_path, extension=extension, mime_type=mime_type)
            )
            logger.info("GZIP encoding derivative", extra={"path": str(path)})
            await asyncio.to_thread(_gzip_file, path, body_path)
            content_encoding = "gzip"

        digest, size = await asyncio.to_thread(_hash_file, body_path)
        key = f"{key_prefix}.{extension}"

        logger.info(
            "Uploading derivative",
            extra={"object_name": key, "content_type": mime_type, "sha256": digest},
        )
        with open(body_path, "rb") as body:
            await self._storage.upload_object(
                bucket_name=self._config.destination_bucket,
                object_name=key,
                data=body,
                size=size,
                content_type=mime_type,
                content_encoding=content_encoding,
                metadata={"sha256": digest},
                sse=self._config.sse,
                sse_key_id=self._config.sse_key_id,
            )

        for artifact in artifacts:
            logger.info("Deleting local artifact", extra={"path": str(artifact.path)})
            artifact.path.unlink()

        return PublishedDerivative(
            bucket=self._config.destination_bucket,
            key=key,
            content_type=mime_type,
            content_encoding=content_encoding,
            sha256=digest,
            size=size,
        )


def _gzip_file(source: Path, destination: Path) -> None:
    """Writes a maximum-compression gzip copy of source; source is left untouched."""
    with open(source, "rb") as src, gzip.open(destination, "wb", compresslevel=9) as dst:
        shutil.copyfileobj(src, dst)


def _hash_file(path: Path) -> tuple[str, int]:
    """Returns the SHA-256 hex digest and size of a file."""
    sha256 = hashlib.sha256()
    size = 0
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_HASH_CHUNK_SIZE)
            if not chunk:
                break
            sha256.update(chunk)
            size += len(chunk)
    return sha256.hexdigest(), size
