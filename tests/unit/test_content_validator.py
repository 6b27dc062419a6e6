"""Tests for domain/content_validator.py."""

import pytest

from conftest import GENUINE_MEDIA, PLAYLIST
from media_transcoder.domain import ContentValidator
from media_transcoder.domain import content_validator as content_validator_module
from media_transcoder.exceptions import FormatSpoofError


class TestContentValidator:
    @pytest.mark.asyncio
    async def test_playlist_disguised_as_mp4(self, tmp_path):
        path = tmp_path / "bad.mp4"
        path.write_bytes(PLAYLIST)
        with pytest.raises(FormatSpoofError) as exc_info:
            await ContentValidator().check_genuine_media(path)
        assert exc_info.value.file_name == "bad.mp4"

    @pytest.mark.asyncio
    async def test_genuine_media_passes(self, tmp_path):
        path = tmp_path / "good.mp4"
        path.write_bytes(GENUINE_MEDIA)
        await ContentValidator().check_genuine_media(path)

    @pytest.mark.asyncio
    async def test_signature_on_a_later_line(self, tmp_path):
        path = tmp_path / "late.mp4"
        path.write_bytes(b"garbage header\n#EXTINF:10,\nsegment.ts\n")
        with pytest.raises(FormatSpoofError):
            await ContentValidator().check_genuine_media(path)

    @pytest.mark.asyncio
    async def test_signature_mid_line_is_ignored(self, tmp_path):
        path = tmp_path / "inline.mp4"
        path.write_bytes(b"\x00\x01binary#EXT\x02\x03")
        await ContentValidator().check_genuine_media(path)

    @pytest.mark.asyncio
    async def test_empty_file_passes(self, tmp_path):
        path = tmp_path / "empty.mp4"
        path.write_bytes(b"")
        await ContentValidator().check_genuine_media(path)

    @pytest.mark.asyncio
    async def test_signature_split_across_chunks(self, tmp_path, monkeypatch):
        monkeypatch.setattr(content_validator_module, "_CHUNK_SIZE", 8)
        path = tmp_path / "split.mp4"
        # "\n#EXT" straddles the 8-byte boundary.
        path.write_bytes(b"\x00" * 6 + b"\n#EXTINF:1,\n")
        with pytest.raises(FormatSpoofError):
            await ContentValidator().check_genuine_media(path)
