"""Infrastructure implementations."""

from .in_memory_storage import InMemoryStorageAdapter
from .minio_storage import MinioStorageAdapter
from .rabbitmq_broker import RabbitMQBroker

__all__ = ["InMemoryStorageAdapter", "MinioStorageAdapter", "RabbitMQBroker"]
