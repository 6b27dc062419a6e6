"""Domain layer containing the pipeline stages and models."""

from .models import (
    CompletionCallback,
    Invocation,
    LocalArtifact,
    PipelineResult,
    PipelineState,
    ProbeResult,
    PublishedDerivative,
    SourceLocation,
)
from .content_validator import ContentValidator
from .prober import Prober
from .transcoder import Transcoder
from .publisher import ArtifactPublisher

__all__ = [
    "ArtifactPublisher",
    "CompletionCallback",
    "ContentValidator",
    "Invocation",
    "LocalArtifact",
    "PipelineResult",
    "PipelineState",
    "ProbeResult",
    "Prober",
    "PublishedDerivative",
    "SourceLocation",
    "Transcoder",
]
