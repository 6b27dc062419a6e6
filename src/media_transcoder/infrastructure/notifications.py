"""Decoding of S3-format bucket notifications (AWS S3 and MinIO)."""

from typing import Any
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from media_transcoder.domain.models import SourceLocation
from media_transcoder.exceptions import InvalidEventError


class S3Bucket(BaseModel, frozen=True):
    name: str


class S3Object(BaseModel, frozen=True):
    key: str


class S3Entity(BaseModel, frozen=True):
    bucket: S3Bucket
    object: S3Object


class S3Record(BaseModel, frozen=True):
    model_config = ConfigDict(populate_by_name=True)

    event_name: str | None = Field(default=None, alias="eventName")
    s3: S3Entity


class BucketNotification(BaseModel, frozen=True):
    """An S3 event notification; only the first record is processed."""

    model_config = ConfigDict(populate_by_name=True)

    records: list[S3Record] = Field(alias="Records", min_length=1)


def parse_bucket_notification(event: Any) -> SourceLocation:
    """
    Extracts the bucket and decoded key from an S3-format notification.

    Object keys arrive form-encoded: "%2F"-style escapes and "+" for spaces.

    Args:
        event: The notification as a dict, or as its JSON text.

    Returns:
        The decoded source location.

    Raises:
        InvalidEventError: If the payload is not a bucket notification.
    """
    try:
        if isinstance(event, (str, bytes)):
            notification = BucketNotification.model_validate_json(event)
        else:
            notification = BucketNotification.model_validate(event)
    except ValidationError as e:
        raise InvalidEventError("not an S3 bucket notification", e) from e

    entity = notification.records[0].s3
    key = unquote_plus(entity.object.key)
    if not key:
        raise InvalidEventError("object key is empty")
    return SourceLocation(bucket=entity.bucket.name, key=key)
