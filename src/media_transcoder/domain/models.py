"""Domain models for the media transcoding pipeline."""

from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel


class PipelineState(str, Enum):
    """Lifecycle states of a single pipeline invocation."""

    IDLE = "idle"
    FETCHING = "fetching"
    VALIDATING = "validating"
    PROBING = "probing"
    TRANSCODING = "transcoding"
    PUBLISHING = "publishing"
    CLEANING = "cleaning"
    DONE = "done"
    FAILED = "failed"


class SourceLocation(BaseModel, frozen=True):
    """Decoded pointer to the object that triggered the invocation."""

    bucket: str
    key: str


class LocalArtifact(BaseModel, frozen=True):
    """A scratch file owned by exactly one invocation."""

    path: Path
    extension: str
    mime_type: str | None = None
    temporary: Literal[True] = True


class ProbeResult(BaseModel, frozen=True):
    """Outcome of probing the downloaded source."""

    has_valid_video_stream: bool
    duration_seconds: float | None = None


class PublishedDerivative(BaseModel, frozen=True):
    """A derivative that was uploaded to the destination bucket."""

    bucket: str
    key: str
    content_type: str
    content_encoding: str | None = None
    sha256: str
    size: int


class PipelineResult(BaseModel, frozen=True):
    """Success payload handed to the invocation's completion callback."""

    source: SourceLocation
    key_prefix: str
    derivatives: tuple[PublishedDerivative, ...]


CompletionCallback = Callable[[Exception | None, PipelineResult | None], None]


class Invocation(BaseModel, frozen=True):
    """A single notified object together with its completion callback."""

    event: Any
    complete: CompletionCallback
