import logging
import os
import sys

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"

# Clients that log every frame or request at INFO.
_NOISY_LOGGERS = ("pika", "urllib3", "ddtrace")


def setup_logging():
    """
    Configures structured JSON logging for the worker and returns the root logger.

    Records are written to stdout as JSON objects carrying the timestamp, level,
    logger name, message, and the Datadog trace_id/span_id. Fields passed via
    ``extra`` become top-level keys. The level comes from LOG_LEVEL (default
    INFO). Calling it again replaces the handler rather than adding another.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    root_logger.handlers = [stream_handler]

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger
