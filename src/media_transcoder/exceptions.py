"""Custom exceptions for the media-transcoder service."""


class TransportError(Exception):
    """Raised when moving bytes to or from object storage fails."""

    def __init__(
        self, object_name: str, cause: Exception | None = None, action: str = "transfer"
    ):
        self.object_name = object_name
        self.cause = cause
        super().__init__(f"Failed to {action} '{object_name}'")


class StorageDownloadError(TransportError):
    """Raised when downloading a file from storage fails."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        super().__init__(object_name, cause, action="download")


class StorageUploadError(TransportError):
    """Raised when uploading a file to storage fails."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        super().__init__(object_name, cause, action="upload")


class InvalidEventError(Exception):
    """Raised when a storage notification cannot be decoded into a source location."""

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        self.cause = cause
        super().__init__(f"Invalid storage event: {reason}")


class FormatSpoofError(Exception):
    """Raised when a file's contents are a playlist disguised as binary media."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"File '{file_name}' looks like an M3U playlist, bailing out")


class NoValidVideoStreamError(Exception):
    """Raised when a probed file has no video stream within the duration limit."""

    def __init__(self, file_name: str, reason: str):
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"No valid video stream found in '{file_name}': {reason}")


class ProbeExecutionError(Exception):
    """Raised when the probing tool fails or produces unreadable output."""

    def __init__(self, file_name: str, cause: Exception | str | None = None):
        self.file_name = file_name
        self.cause = cause
        super().__init__(f"Failed to probe '{file_name}': {cause}")


class TranscodeExecutionError(Exception):
    """Raised when the codec tool exits with an error or is killed by a signal."""

    def __init__(
        self,
        file_name: str,
        returncode: int | None = None,
        stderr: str = "",
        cause: Exception | None = None,
    ):
        self.file_name = file_name
        self.returncode = returncode
        self.stderr = stderr
        self.cause = cause
        if returncode is not None and returncode < 0:
            detail = f"terminated by signal {-returncode}"
        elif returncode is not None:
            detail = f"exited with code {returncode}"
        else:
            detail = str(cause)
        super().__init__(f"Failed to transcode '{file_name}': {detail}")


class UnknownMimeTypeError(Exception):
    """Raised when a derivative's extension has no configured MIME type."""

    def __init__(self, file_name: str, extension: str):
        self.file_name = file_name
        self.extension = extension
        super().__init__(
            f"No MIME type configured for extension '{extension}' of '{file_name}'"
        )


class PipelineAlreadyRunError(Exception):
    """Raised when a pipeline driver instance is asked to run a second time."""

    def __init__(self):
        super().__init__("A pipeline driver can only run a single invocation")


class ConfigurationError(Exception):
    """Raised when an environment input is missing or malformed."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")


class EventPublishError(Exception):
    """Raised when publishing an event to the message broker fails."""

    def __init__(self, routing_key: str, cause: Exception | None = None):
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(f"Failed to publish event with routing key '{routing_key}'")
