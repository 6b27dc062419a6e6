"""Guards the codec tool against disguised input."""

import asyncio
from pathlib import Path

from media_transcoder.exceptions import FormatSpoofError
from media_transcoder.logging import setup_logging

logger = setup_logging()

PLAYLIST_SIGNATURE = b"#EXT"
_CHUNK_SIZE = 1024 * 1024


class ContentValidator:
    """Rejects files whose contents are a streaming playlist rather than media."""

    async def check_genuine_media(self, path: Path) -> None:
        """
        Scans a downloaded file for an M3U/HLS playlist signature.

        A playlist renamed to a media extension makes the codec tool fetch the
        segments it references, so any line starting with "#EXT" rejects the
        file before a subprocess ever sees it.

        Args:
            path: The local file to inspect.

        Raises:
            FormatSpoofError: If a playlist signature is found.
        """
        spoofed = await asyncio.to_thread(self._contains_playlist_signature, path)
        if spoofed:
            logger.warning("Playlist signature found in input", extra={"path": str(path)})
            raise FormatSpoofError(path.name)

        logger.info("Content check passed", extra={"path": str(path)})

    def _contains_playlist_signature(self, path: Path) -> bool:
        """Returns True if any line of the file begins with the playlist signature."""
        needle = b"\n" + PLAYLIST_SIGNATURE
        # Start of file counts as the start of a line.
        carry = b"\n"
        with open(path, "rb") as f:
            while True:
                chunk = f.read(_CHUNK_SIZE)
                if not chunk:
                    return False
                window = carry + chunk
                if needle in window:
                    return True
                carry = window[-(len(needle) - 1) :]
