"""Application configuration loaded from environment variables."""

import json
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from media_transcoder.exceptions import ConfigurationError

KEY_PREFIX_PLACEHOLDER = "$KEY_PREFIX"

# Field name -> environment key, used to name the offending input on failure.
_PIPELINE_ENV_KEYS = {
    "destination_bucket": "DESTINATION_BUCKET",
    "transcode_args": "TRANSCODE_ARGS",
    "mime_types": "MIME_TYPES",
    "video_max_duration": "VIDEO_MAX_DURATION",
    "use_gzip": "USE_GZIP",
    "temp_dir": "TEMP",
    "executable_dir": "CODE_LOCATION",
    "sse": "SSE",
    "sse_key_id": "SSE_KEY_ID",
}


class PipelineConfig(BaseModel, frozen=True):
    """Per-invocation pipeline configuration."""

    destination_bucket: str = Field(min_length=1)
    transcode_args: tuple[str, ...] = Field(min_length=1)
    mime_types: dict[str, str]
    video_max_duration: float = Field(gt=0)
    use_gzip: bool = False
    temp_dir: Path = Path(tempfile.gettempdir())
    executable_dir: Path | None = None
    # Server-side encryption requested on every upload.
    sse: Literal["AES256", "aws:kms"] | None = None
    sse_key_id: str | None = Field(default=None, validate_default=True)

    @field_validator("transcode_args", mode="before")
    @classmethod
    def split_args(cls, v):
        if isinstance(v, str):
            return tuple(v.split())
        return v

    @field_validator("mime_types", mode="before")
    @classmethod
    def parse_mime_types(cls, v):
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"not valid JSON ({e.msg})") from e
        if not isinstance(v, dict):
            raise ValueError("must be a JSON object mapping extension to MIME type")
        return v

    @field_validator("sse_key_id")
    @classmethod
    def require_kms_key(cls, v, info: ValidationInfo):
        if info.data.get("sse") == "aws:kms" and not v:
            raise ValueError("a KMS key id is required when SSE is aws:kms")
        return v


class MinioConfig(BaseModel, frozen=True):
    """MinIO / S3 connection configuration."""

    endpoint: str
    user: str
    password: str
    secure: bool = False


class QueueConfig(BaseModel, frozen=True):
    """RabbitMQ queue configuration."""

    name: str
    queue_type: str = "quorum"
    max_delivery_count: int = 3
    expected_routing_key: str
    success_routing_key: str
    dlq_name: str
    dlq_exchange_name: str = "dead_letter_exchange"
    dlq_routing_key: str


class RabbitMQConfig(BaseModel, frozen=True):
    """RabbitMQ connection configuration."""

    host: str
    user: str
    password: str
    exchange_name: str = "events"
    queue_config: QueueConfig = QueueConfig(
        name="media_transcode_queue",
        queue_type="quorum",
        max_delivery_count=3,
        expected_routing_key="media.object.created",
        success_routing_key="media.transcode.completed",
        dlq_name="dlq_media_transcode",
        dlq_exchange_name="dead_letter_exchange",
        dlq_routing_key="media.transcode.failed",
    )


class AppConfig(BaseModel, frozen=True):
    """Root configuration for the worker process."""

    minio: MinioConfig
    rabbitmq: RabbitMQConfig


def load_pipeline_config(env: Mapping[str, str] | None = None) -> PipelineConfig:
    """
    Builds the pipeline configuration from environment-style inputs.

    Args:
        env: Key/value inputs. Defaults to the process environment.

    Returns:
        An immutable PipelineConfig.

    Raises:
        ConfigurationError: If a required input is missing or malformed.
    """
    env = os.environ if env is None else env

    raw = {
        "destination_bucket": env.get("DESTINATION_BUCKET"),
        "transcode_args": env.get("TRANSCODE_ARGS") or env.get("FFMPEG_ARGS"),
        "mime_types": env.get("MIME_TYPES"),
        "video_max_duration": env.get("VIDEO_MAX_DURATION"),
    }
    for key, value in raw.items():
        if value is None or value == "":
            raise ConfigurationError(_PIPELINE_ENV_KEYS[key], "value is required")

    if env.get("USE_GZIP"):
        raw["use_gzip"] = env["USE_GZIP"].strip().lower()
    if env.get("TEMP"):
        raw["temp_dir"] = env["TEMP"]
    if env.get("CODE_LOCATION"):
        raw["executable_dir"] = env["CODE_LOCATION"]
    if env.get("SSE"):
        raw["sse"] = env["SSE"]
    if env.get("SSE_KEY_ID"):
        raw["sse_key_id"] = env["SSE_KEY_ID"]

    try:
        return PipelineConfig.model_validate(raw)
    except ValidationError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else ""
        raise ConfigurationError(
            _PIPELINE_ENV_KEYS.get(field, field), error["msg"]
        ) from e


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    """Loads the worker configuration from environment variables."""
    env = os.environ if env is None else env
    return AppConfig(
        minio=MinioConfig(
            endpoint=env.get("MINIO_ENDPOINT", "minio:9000"),
            user=env.get("MINIO_USER", ""),
            password=env.get("MINIO_PASSWORD", ""),
            secure=env.get("MINIO_SECURE", "false").lower() == "true",
        ),
        rabbitmq=RabbitMQConfig(
            host=env.get("RABBITMQ_HOST", "rabbitmq"),
            user=env.get("RABBITMQ_USER", ""),
            password=env.get("RABBITMQ_PASSWORD", ""),
        ),
    )
