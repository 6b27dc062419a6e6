"""Produces derivative renditions with ffmpeg."""

import asyncio
from pathlib import Path

from media_transcoder.config import KEY_PREFIX_PLACEHOLDER
from media_transcoder.exceptions import TranscodeExecutionError
from media_transcoder.logging import setup_logging
from media_transcoder.utils import run_tool

logger = setup_logging()


class Transcoder:
    """Runs the configured ffmpeg argument template once per source file."""

    def __init__(self, executable: str, args_template: tuple[str, ...]):
        self._executable = executable
        self._args_template = args_template

    def build_command(self, path: Path, key_prefix: str) -> list[str]:
        """Expands the argument template for one source file."""
        args = [
            token.replace(KEY_PREFIX_PLACEHOLDER, key_prefix)
            for token in self._args_template
        ]
        return [self._executable, "-y", "-loglevel", "warning", "-i", str(path), *args]

    async def transcode(self, path: Path, output_dir: Path, key_prefix: str) -> None:
        """
        Transcodes the source into whatever outputs the template names.

        ffmpeg runs with output_dir as its working directory, so relative output
        names in the template land there. Which files appear, and how many, is
        left entirely to the template.

        Args:
            path: The validated source file.
            output_dir: Directory that receives the derivatives.
            key_prefix: Substituted for $KEY_PREFIX in the template.

        Raises:
            TranscodeExecutionError: If ffmpeg cannot start, exits non-zero, or is killed.
        """
        cmd = self.build_command(path, key_prefix)
        logger.info(
            "Starting ffmpeg",
            extra={"path": str(path), "output_dir": str(output_dir), "key_prefix": key_prefix},
        )

        try:
            completed = await asyncio.to_thread(run_tool, cmd, output_dir)
        except OSError as e:
            logger.exception("ffmpeg could not be started", extra={"executable": self._executable})
            raise TranscodeExecutionError(path.name, cause=e) from e

        if completed.stderr:
            logger.info("ffmpeg output", extra={"stderr": completed.stderr})

        if completed.returncode != 0:
            logger.error(
                "ffmpeg failed",
                extra={"returncode": completed.returncode, "path": str(path)},
            )
            raise TranscodeExecutionError(
                path.name, returncode=completed.returncode, stderr=completed.stderr
            )

        logger.info("ffmpeg finished", extra={"path": str(path)})
