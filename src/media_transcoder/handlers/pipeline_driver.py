"""State machine that runs one storage notification through the transcoding pipeline."""

import shutil
import tempfile
from pathlib import Path, PurePosixPath

import aiofiles

from media_transcoder.config import PipelineConfig
from media_transcoder.domain import (
    ArtifactPublisher,
    ContentValidator,
    Invocation,
    LocalArtifact,
    PipelineResult,
    PipelineState,
    Prober,
    SourceLocation,
    Transcoder,
)
from media_transcoder.exceptions import PipelineAlreadyRunError
from media_transcoder.infrastructure.interfaces import StorageAdapter
from media_transcoder.logging import setup_logging
from media_transcoder.utils import derive_key_prefix, file_extension

logger = setup_logging()

DOWNLOAD_DIR_NAME = "download"
OUTPUT_DIR_NAME = "outputs"
# Used when the key has no usable last segment, e.g. "videos/..".
FALLBACK_FILE_NAME = "source"


class PipelineDriver:
    """
    Fetches, validates, probes, transcodes, publishes and cleans up one object.

    A driver instance runs exactly one invocation. Stages run strictly in order;
    only publishing fans out. Whatever happens, the invocation's completion
    callback is called once and no scratch file outlives the run.
    """

    def __init__(
        self,
        config: PipelineConfig,
        storage: StorageAdapter,
        validator: ContentValidator,
        prober: Prober,
        transcoder: Transcoder,
        publisher: ArtifactPublisher,
    ):
        self._config = config
        self._storage = storage
        self._validator = validator
        self._prober = prober
        self._transcoder = transcoder
        self._publisher = publisher
        self._state = PipelineState.IDLE
        self._workdir: Path | None = None
        self._artifacts: list[LocalArtifact] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    async def run(self, invocation: Invocation) -> PipelineResult | None:
        """
        Runs the invocation and reports the outcome through its callback.

        Args:
            invocation: The event to process and its completion callback.

        Returns:
            The PipelineResult on success, None on failure.

        Raises:
            PipelineAlreadyRunError: If this driver has already been run. The
                callback is not called in that case.
        """
        if self._state is not PipelineState.IDLE:
            raise PipelineAlreadyRunError()

        error = None
        result = None
        try:
            result = await self._execute(invocation.event)
        except Exception as e:
            error = e
            logger.exception(
                "Pipeline failed",
                extra={"state": self._state.value, "error_type": type(e).__name__},
            )
            self._transition(PipelineState.FAILED)
            self._discard_local_artifacts()

        invocation.complete(error, result)
        return result

    async def _execute(self, event) -> PipelineResult:
        self._transition(PipelineState.FETCHING)
        source = self._storage.locate_source(event)
        key_prefix = derive_key_prefix(source.key)
        logger.info(
            "Processing object",
            extra={"bucket_name": source.bucket, "object_name": source.key, "key_prefix": key_prefix},
        )

        output_dir = self._prepare_workdir()
        source_file = await self._fetch(source)

        self._transition(PipelineState.VALIDATING)
        await self._validator.check_genuine_media(source_file.path)

        self._transition(PipelineState.PROBING)
        await self._prober.probe(source_file.path)

        self._transition(PipelineState.TRANSCODING)
        await self._transcoder.transcode(source_file.path, output_dir, key_prefix)

        self._transition(PipelineState.PUBLISHING)
        derivatives = await self._publisher.publish(output_dir, key_prefix)

        self._transition(PipelineState.CLEANING)
        self._remove(source_file)
        shutil.rmtree(self._workdir)

        self._transition(PipelineState.DONE)
        logger.info(
            "Pipeline finished",
            extra={
                "object_name": source.key,
                "derivatives": [d.key for d in derivatives],
            },
        )
        return PipelineResult(source=source, key_prefix=key_prefix, derivatives=derivatives)

    def _prepare_workdir(self) -> Path:
        """Creates this invocation's private scratch directory and returns its output dir."""
        temp_root = Path(self._config.temp_dir)
        temp_root.mkdir(parents=True, exist_ok=True)
        self._workdir = Path(tempfile.mkdtemp(prefix="transcode-", dir=temp_root)).resolve()

        (self._workdir / DOWNLOAD_DIR_NAME).mkdir()
        output_dir = self._workdir / OUTPUT_DIR_NAME
        output_dir.mkdir()
        return output_dir

    async def _fetch(self, source: SourceLocation) -> LocalArtifact:
        """Streams the source object to disk; returns once the stream has ended."""
        file_name = PurePosixPath(source.key).name
        if file_name in ("", ".", ".."):
            file_name = FALLBACK_FILE_NAME
        path = self._workdir / DOWNLOAD_DIR_NAME / file_name
        artifact = LocalArtifact(path=path, extension=file_extension(file_name))
        self._artifacts.append(artifact)

        logger.info(
            "Starting download",
            extra={"bucket_name": source.bucket, "object_name": source.key},
        )
        async with aiofiles.open(path, "wb") as f:
            async for chunk in self._storage.iter_object(source.bucket, source.key):
                await f.write(chunk)
        logger.info("Download finished", extra={"path": str(path)})
        return artifact

    def _remove(self, artifact: LocalArtifact) -> None:
        logger.info("Deleting local artifact", extra={"path": str(artifact.path)})
        artifact.path.unlink()
        self._artifacts.remove(artifact)

    def _discard_local_artifacts(self) -> None:
        """Best-effort removal of every scratch file after a failure; never raises."""
        if self._workdir is None:
            return

        leftovers = list(self._artifacts)
        output_dir = self._workdir / OUTPUT_DIR_NAME
        try:
            if output_dir.is_dir():
                leftovers.extend(
                    LocalArtifact(path=path, extension=file_extension(path.name))
                    for path in sorted(output_dir.iterdir())
                    if path.is_file()
                )
        except OSError:
            logger.exception("Could not list output directory", extra={"path": str(output_dir)})

        for artifact in leftovers:
            try:
                artifact.path.unlink(missing_ok=True)
                logger.info("Deleted local artifact", extra={"path": str(artifact.path)})
            except OSError:
                logger.exception("Could not delete local artifact", extra={"path": str(artifact.path)})
        self._artifacts.clear()

        try:
            shutil.rmtree(self._workdir)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Could not remove scratch directory", extra={"path": str(self._workdir)})

    def _transition(self, state: PipelineState) -> None:
        logger.info(
            "Pipeline state changed",
            extra={"from_state": self._state.value, "to_state": state.value},
        )
        self._state = state


def build_pipeline_driver(config: PipelineConfig, storage: StorageAdapter) -> PipelineDriver:
    """Composes a driver with the default stage implementations for a storage backend."""
    return PipelineDriver(
        config=config,
        storage=storage,
        validator=ContentValidator(),
        prober=Prober(
            executable=storage.locate_executable("ffprobe", config.executable_dir),
            max_duration_seconds=config.video_max_duration,
        ),
        transcoder=Transcoder(
            executable=storage.locate_executable("ffmpeg", config.executable_dir),
            args_template=config.transcode_args,
        ),
        publisher=ArtifactPublisher(storage, config),
    )
