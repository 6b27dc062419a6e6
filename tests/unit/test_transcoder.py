"""Tests for domain/transcoder.py against a fake ffmpeg."""

from pathlib import Path

import pytest

from conftest import write_script
from media_transcoder.domain import Transcoder
from media_transcoder.exceptions import TranscodeExecutionError


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "download" / "clip.mp4"
    path.parent.mkdir()
    path.write_bytes(b"\x00" * 64)
    return path


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "outputs"
    path.mkdir()
    return path


class TestBuildCommand:
    def test_fixed_prefix_then_template(self):
        transcoder = Transcoder("ffmpeg", ("-an", "out.mp4"))
        assert transcoder.build_command(Path("/tmp/in.mp4"), "videos/clip") == [
            "ffmpeg", "-y", "-loglevel", "warning", "-i", "/tmp/in.mp4", "-an", "out.mp4",
        ]

    def test_key_prefix_substituted_everywhere(self):
        transcoder = Transcoder(
            "ffmpeg", ("-metadata", "title=$KEY_PREFIX", "-metadata", "comment=$KEY_PREFIX:$KEY_PREFIX")
        )
        cmd = transcoder.build_command(Path("/tmp/in.mp4"), "clip")
        assert cmd[-3:] == ["title=clip", "-metadata", "comment=clip:clip"]

    def test_prefix_with_spaces_stays_one_argument(self):
        transcoder = Transcoder("ffmpeg", ("-metadata", "title=$KEY_PREFIX"))
        cmd = transcoder.build_command(Path("/tmp/in.mp4"), "my video")
        assert cmd[-1] == "title=my video"


class TestTranscode:
    @pytest.mark.asyncio
    async def test_outputs_land_in_output_dir(self, fake_ffmpeg, source, output_dir, calls_log):
        transcoder = Transcoder(str(fake_ffmpeg()), ("-metadata", "title=$KEY_PREFIX", "out.mp4", "out.png"))
        await transcoder.transcode(source, output_dir, "videos/clip")

        assert sorted(p.name for p in output_dir.iterdir()) == ["out.mp4", "out.png"]
        assert list(source.parent.iterdir()) == [source]
        assert f"-y -loglevel warning -i {source} -metadata title=videos/clip" in calls_log.read_text()

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, fake_ffmpeg, source, output_dir):
        transcoder = Transcoder(str(fake_ffmpeg(exit_code=1)), ("out.mp4",))
        with pytest.raises(TranscodeExecutionError) as exc_info:
            await transcoder.transcode(source, output_dir, "clip")
        assert exc_info.value.returncode == 1
        assert "frame=1" in exc_info.value.stderr
        assert "exited with code 1" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_executable(self, tmp_path, source, output_dir):
        transcoder = Transcoder(str(tmp_path / "no-such-ffmpeg"), ("out.mp4",))
        with pytest.raises(TranscodeExecutionError) as exc_info:
            await transcoder.transcode(source, output_dir, "clip")
        assert exc_info.value.returncode is None
        assert isinstance(exc_info.value.cause, OSError)


class TestTranscodeExecutionError:
    def test_signal_termination_message(self):
        error = TranscodeExecutionError("clip.mp4", returncode=-9)
        assert "terminated by signal 9" in str(error)

    @pytest.mark.asyncio
    async def test_killed_by_signal(self, tmp_path, source, output_dir):
        ffmpeg = write_script(tmp_path / "ffmpeg", "kill -9 $$\n")
        with pytest.raises(TranscodeExecutionError) as exc_info:
            await Transcoder(str(ffmpeg), ("out.mp4",)).transcode(source, output_dir, "clip")
        assert exc_info.value.returncode == -9
        assert "terminated by signal 9" in str(exc_info.value)
