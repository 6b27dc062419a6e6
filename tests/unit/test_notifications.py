"""Tests for infrastructure/notifications.py and key naming helpers."""

import json

import pytest

from media_transcoder.exceptions import InvalidEventError
from media_transcoder.infrastructure.notifications import parse_bucket_notification
from media_transcoder.utils import derive_key_prefix, file_extension


def _notification(key: str, bucket: str = "uploads") -> dict:
    return {
        "EventName": "s3:ObjectCreated:Put",
        "Key": f"{bucket}/{key}",
        "Records": [
            {
                "eventVersion": "2.0",
                "eventSource": "minio:s3",
                "eventName": "s3:ObjectCreated:Put",
                "s3": {
                    "bucket": {"name": bucket, "arn": f"arn:aws:s3:::{bucket}"},
                    "object": {"key": key, "size": 1024, "contentType": "video/mp4"},
                },
            }
        ],
    }


class TestParseBucketNotification:
    def test_plain_key(self):
        location = parse_bucket_notification(_notification("videos/clip.mp4"))
        assert location.bucket == "uploads"
        assert location.key == "videos/clip.mp4"

    def test_plus_is_a_space(self):
        location = parse_bucket_notification(_notification("my+video.mp4"))
        assert location.key == "my video.mp4"

    def test_percent_escapes(self):
        location = parse_bucket_notification(_notification("folder%2Fcaf%C3%A9+1.mp4"))
        assert location.key == "folder/café 1.mp4"

    def test_encoded_plus_survives(self):
        location = parse_bucket_notification(_notification("a%2Bb.mp4"))
        assert location.key == "a+b.mp4"

    def test_json_text(self):
        body = json.dumps(_notification("clip.mp4"))
        assert parse_bucket_notification(body).key == "clip.mp4"

    def test_json_bytes(self):
        body = json.dumps(_notification("clip.mp4")).encode()
        assert parse_bucket_notification(body).key == "clip.mp4"

    def test_first_record_wins(self):
        event = _notification("first.mp4")
        event["Records"].append(_notification("second.mp4")["Records"][0])
        assert parse_bucket_notification(event).key == "first.mp4"

    @pytest.mark.parametrize(
        "event",
        [
            {},
            {"Records": []},
            {"Records": [{"s3": {"bucket": {"name": "b"}}}]},
            "not json",
            42,
        ],
    )
    def test_invalid_events(self, event):
        with pytest.raises(InvalidEventError):
            parse_bucket_notification(event)

    def test_empty_key(self):
        with pytest.raises(InvalidEventError):
            parse_bucket_notification(_notification(""))


class TestDeriveKeyPrefix:
    @pytest.mark.parametrize(
        "key, prefix",
        [
            ("clip.mp4", "clip"),
            ("videos/clip.mp4", "videos/clip"),
            ("videos/a.b.mov", "videos/a.b"),
            ("videos.v2/clip", "videos.v2/clip"),
            ("noextension", "noextension"),
        ],
    )
    def test_strips_trailing_extension(self, key, prefix):
        assert derive_key_prefix(key) == prefix


class TestFileExtension:
    @pytest.mark.parametrize(
        "name, extension",
        [
            ("out.mp4", "mp4"),
            ("out.tar.gz", "gz"),
            ("thumb.PNG", "PNG"),
            ("README", ""),
            ("trailing.", ""),
        ],
    )
    def test_extension(self, name, extension):
        assert file_extension(name) == extension
