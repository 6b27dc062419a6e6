from media_transcoder.config import (
    AppConfig,
    MinioConfig,
    PipelineConfig,
    QueueConfig,
    RabbitMQConfig,
    load_config,
    load_pipeline_config,
)
from media_transcoder.exceptions import (
    ConfigurationError,
    EventPublishError,
    FormatSpoofError,
    InvalidEventError,
    NoValidVideoStreamError,
    PipelineAlreadyRunError,
    ProbeExecutionError,
    StorageDownloadError,
    StorageUploadError,
    TranscodeExecutionError,
    TransportError,
    UnknownMimeTypeError,
)
from media_transcoder.logging import setup_logging

__all__ = [
    "setup_logging",
    "AppConfig",
    "MinioConfig",
    "PipelineConfig",
    "QueueConfig",
    "RabbitMQConfig",
    "load_config",
    "load_pipeline_config",
    "ConfigurationError",
    "EventPublishError",
    "FormatSpoofError",
    "InvalidEventError",
    "NoValidVideoStreamError",
    "PipelineAlreadyRunError",
    "ProbeExecutionError",
    "StorageDownloadError",
    "StorageUploadError",
    "TranscodeExecutionError",
    "TransportError",
    "UnknownMimeTypeError",
]
