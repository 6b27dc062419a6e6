"""Abstract interfaces for infrastructure dependencies."""

from media_transcoder.infrastructure.interfaces.message_broker import Delivery, MessageBroker
from media_transcoder.infrastructure.interfaces.storage import (
    CACHE_CONTROL,
    StorageAdapter,
)

__all__ = [
    "CACHE_CONTROL",
    "Delivery",
    "MessageBroker",
    "StorageAdapter",
]
