"""Validates the downloaded source with ffprobe."""

import asyncio
import json
from pathlib import Path
from typing import Any

from media_transcoder.domain.models import ProbeResult
from media_transcoder.exceptions import NoValidVideoStreamError, ProbeExecutionError
from media_transcoder.logging import setup_logging
from media_transcoder.utils import run_tool

logger = setup_logging()


class Prober:
    """Confirms a file holds a video stream no longer than the configured limit."""

    def __init__(self, executable: str, max_duration_seconds: float):
        self._executable = executable
        self._max_duration = max_duration_seconds

    async def probe(self, path: Path) -> ProbeResult:
        """
        Runs ffprobe against a local file and evaluates its streams.

        Args:
            path: The downloaded source file.

        Returns:
            ProbeResult for the first acceptable video stream.

        Raises:
            ProbeExecutionError: If ffprobe cannot run, fails, or prints invalid JSON.
            NoValidVideoStreamError: If no video stream is within the duration limit.
        """
        logger.info("Starting ffprobe", extra={"path": str(path)})
        cmd = [
            self._executable,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            "-i", str(path),
        ]

        try:
            completed = await asyncio.to_thread(run_tool, cmd, path.parent)
        except OSError as e:
            logger.exception("ffprobe could not be started", extra={"executable": self._executable})
            raise ProbeExecutionError(path.name, e) from e

        if completed.returncode != 0:
            logger.error(
                "ffprobe failed",
                extra={"returncode": completed.returncode, "stderr": completed.stderr},
            )
            raise ProbeExecutionError(
                path.name, f"ffprobe exited with code {completed.returncode}"
            )

        try:
            metadata = json.loads(completed.stdout)
        except json.JSONDecodeError as e:
            raise ProbeExecutionError(path.name, e) from e
        if not isinstance(metadata, dict):
            raise ProbeExecutionError(path.name, "ffprobe output is not a JSON object")

        result = self.evaluate(metadata)
        if not result.has_valid_video_stream:
            reason = (
                "no video stream present"
                if result.duration_seconds is None
                else f"duration {result.duration_seconds}s exceeds {self._max_duration}s"
            )
            logger.warning("Probe rejected input", extra={"path": str(path), "reason": reason})
            raise NoValidVideoStreamError(path.name, reason)

        logger.info(
            "Valid video stream found",
            extra={"path": str(path), "duration_seconds": result.duration_seconds},
        )
        return result

    def evaluate(self, metadata: dict[str, Any]) -> ProbeResult:
        """
        Applies the video stream and duration rules to ffprobe metadata.

        A stream's own duration is preferred; the container duration is used
        when the stream omits it. A stream with no duration at all never passes.
        """
        format_duration = _to_seconds((metadata.get("format") or {}).get("duration"))
        longest = None

        for stream in metadata.get("streams") or []:
            if stream.get("codec_type") != "video":
                continue
            duration = _to_seconds(stream.get("duration"))
            if duration is None:
                duration = format_duration
            if duration is None:
                continue
            if duration <= self._max_duration:
                return ProbeResult(has_valid_video_stream=True, duration_seconds=duration)
            longest = duration if longest is None else max(longest, duration)

        return ProbeResult(has_valid_video_stream=False, duration_seconds=longest)


def _to_seconds(value: Any) -> float | None:
    """ffprobe reports durations as strings such as "12.345000"."""
    if value is None or value == "N/A":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
