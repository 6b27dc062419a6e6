"""Shared fixtures: in-memory storage, pipeline configs and fake media tools.

The fake ffprobe/ffmpeg are tiny POSIX shell scripts written into tmp_path, so
subprocess stages run for real without the actual binaries.
"""

import json
import stat
from pathlib import Path

import pytest

from media_transcoder.config import PipelineConfig
from media_transcoder.infrastructure import InMemoryStorageAdapter

SOURCE_BUCKET = "uploads"
DEST_BUCKET = "derivatives"
MIME_TYPES = {"mp4": "video/mp4", "png": "image/png"}

# Minimal MP4 header; contains no playlist signature.
GENUINE_MEDIA = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + bytes(range(256)) * 8
PLAYLIST = b"#EXTM3U\n#EXT-X-VERSION:3\n#EXTINF:10.0,\nhttp://example.com/segment0.ts\n"


def write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def probe_output(*durations: float | None, codec_type: str = "video", format_duration=None) -> dict:
    """Builds ffprobe-style JSON with one stream per duration."""
    streams = []
    for duration in durations:
        stream = {"codec_type": codec_type}
        if duration is not None:
            stream["duration"] = f"{duration:.6f}"
        streams.append(stream)
    output = {"streams": streams, "format": {}}
    if format_duration is not None:
        output["format"]["duration"] = f"{format_duration:.6f}"
    return output


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def calls_log(tmp_path: Path) -> Path:
    """File every fake tool appends its invocation to, one line per call."""
    return tmp_path / "calls.log"


@pytest.fixture
def fake_ffprobe(bin_dir: Path, calls_log: Path):
    """Returns a factory installing an ffprobe that prints the given JSON."""

    def install(metadata: dict | str | None = None, exit_code: int = 0) -> Path:
        if metadata is None:
            metadata = probe_output(10.0)
        text = metadata if isinstance(metadata, str) else json.dumps(metadata)
        return write_script(
            bin_dir / "ffprobe",
            f'echo "ffprobe $*" >> "{calls_log}"\n'
            f"cat <<'JSON'\n{text}\nJSON\n"
            f"exit {exit_code}\n",
        )

    return install


@pytest.fixture
def fake_ffmpeg(bin_dir: Path, calls_log: Path):
    """
    Returns a factory installing an ffmpeg that writes every relative output
    name it is given (by extension) into its working directory.
    """

    def install(exit_code: int = 0) -> Path:
        return write_script(
            bin_dir / "ffmpeg",
            f'echo "ffmpeg $*" >> "{calls_log}"\n'
            'for arg in "$@"; do\n'
            '  case "$arg" in\n'
            "    /*) ;;\n"
            '    *.mp4|*.png|*.webm|*.bin) printf "derivative %s" "$arg" > "$arg" ;;\n'
            "  esac\n"
            "done\n"
            'echo "frame=1 fps=0.0" >&2\n'
            f"exit {exit_code}\n",
        )

    return install


@pytest.fixture
def storage() -> InMemoryStorageAdapter:
    return InMemoryStorageAdapter(chunk_size=1024)


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def make_config(bin_dir: Path, scratch_dir: Path):
    """Returns a factory for PipelineConfig with test defaults."""

    def build(**overrides) -> PipelineConfig:
        values = {
            "destination_bucket": DEST_BUCKET,
            "transcode_args": ("-metadata", "title=$KEY_PREFIX", "out.mp4", "out.png"),
            "mime_types": MIME_TYPES,
            "video_max_duration": 30,
            "use_gzip": False,
            "temp_dir": scratch_dir,
            "executable_dir": bin_dir,
        }
        values.update(overrides)
        return PipelineConfig(**values)

    return build


@pytest.fixture
def pipeline_config(make_config) -> PipelineConfig:
    return make_config()
