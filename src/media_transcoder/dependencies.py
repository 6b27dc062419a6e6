"""Dependency injection configuration for the media-transcoder worker."""

import pika
from minio import Minio

from media_transcoder.config import load_config
from media_transcoder.infrastructure import MinioStorageAdapter, RabbitMQBroker
from media_transcoder.infrastructure.interfaces import MessageBroker, StorageAdapter
from media_transcoder.logging import setup_logging
from media_transcoder.worker import Worker

logger = setup_logging()

_config = load_config()

_minio_client = Minio(
    endpoint=_config.minio.endpoint,
    access_key=_config.minio.user,
    secret_key=_config.minio.password,
    secure=_config.minio.secure,
)

_storage = MinioStorageAdapter(_minio_client)

_credentials = pika.PlainCredentials(_config.rabbitmq.user, _config.rabbitmq.password)
# The consumer callback blocks for a whole transcode, so heartbeats are off.
_parameters = pika.ConnectionParameters(
    host=_config.rabbitmq.host,
    credentials=_credentials,
    heartbeat=0,
)
_rabbit_connection = pika.BlockingConnection(_parameters)
_rabbit_channel = _rabbit_connection.channel()

_broker = RabbitMQBroker(_rabbit_channel, _config.rabbitmq)
_broker.declare_topology()


def get_storage() -> StorageAdapter:
    """Returns the configured storage adapter."""
    return _storage


def get_broker() -> MessageBroker:
    """Returns the configured message broker."""
    return _broker


def get_worker() -> Worker:
    """Returns the configured worker."""
    return Worker(_broker, _storage, _config.rabbitmq)
