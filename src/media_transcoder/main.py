"""
Media Transcoder Service.

Entry point for the media transcoding worker.
"""

from ddtrace import patch_all

from media_transcoder.dependencies import get_worker

patch_all()


def main():
    """Starts the worker."""
    worker = get_worker()
    worker.start()


if __name__ == "__main__":
    main()
