"""Shared helpers for naming derivatives and running the external media tools."""

import os
import re
import subprocess
from pathlib import Path

from media_transcoder.logging import setup_logging

logger = setup_logging()

_EXTENSION_RE = re.compile(r"\.(\w+)$")
_TRAILING_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def derive_key_prefix(key: str) -> str:
    """Strips the file extension from an object key (videos/a.b.mp4 -> videos/a.b)."""
    return _TRAILING_EXTENSION_RE.sub("", key)


def file_extension(file_name: str) -> str:
    """Returns the extension after the last dot, or an empty string."""
    match = _EXTENSION_RE.search(file_name)
    return match.group(1) if match else ""


def run_tool(
    cmd: list[str], cwd: str | Path | None = None
) -> subprocess.CompletedProcess:
    """
    Runs an external media tool to completion and captures its output.

    The return code is not checked; callers decide how a failure maps onto
    their own error type. A negative return code means the process was
    terminated by that signal.

    Args:
        cmd: Command to run as a list of strings.
        cwd: Working directory for the process.

    Returns:
        The completed process with text stdout and stderr.

    Raises:
        OSError: If the executable cannot be started.
    """
    logger.debug(
        "Running external tool",
        extra={"command": " ".join(str(x) for x in cmd), "cwd": str(cwd)},
    )
    return subprocess.run(
        cmd,
        cwd=os.fspath(cwd) if cwd is not None else None,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
        check=False,
    )
