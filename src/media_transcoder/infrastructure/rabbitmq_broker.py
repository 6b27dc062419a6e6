"""RabbitMQ implementation of the MessageBroker interface."""

import json
from collections.abc import Callable
from typing import Any

import pika
from pika.adapters.blocking_connection import BlockingChannel

from media_transcoder.config import RabbitMQConfig
from media_transcoder.exceptions import EventPublishError
from media_transcoder.logging import setup_logging

from .interfaces import Delivery, MessageBroker

logger = setup_logging()

DELIVERY_COUNT_HEADER = "x-delivery-count"


class RabbitMQBroker(MessageBroker):
    """
    Consumes MinIO's AMQP bucket notifications from a quorum queue.

    Rejected deliveries are requeued; the quorum queue counts attempts and
    dead-letters a notification once max_delivery_count is exceeded.
    """

    def __init__(self, channel: BlockingChannel, config: RabbitMQConfig):
        self._channel = channel
        self._config = config

    def consume(self, callback: Callable[[Delivery], None]) -> None:
        queue_name = self._config.queue_config.name

        def on_message(ch, method, properties, body):
            headers = (properties.headers if properties else None) or {}
            # Quorum queues count prior deliveries; the first one carries no header.
            attempt = int(headers.get(DELIVERY_COUNT_HEADER, 0)) + 1
            callback(
                Delivery(
                    body=body,
                    delivery_tag=method.delivery_tag,
                    attempt=attempt,
                    headers=headers,
                )
            )

        # One transcode at a time per worker process.
        self._channel.basic_qos(prefetch_count=1)
        self._channel.basic_consume(queue=queue_name, on_message_callback=on_message)
        logger.info("Message consumption started", extra={"queue": queue_name})
        self._channel.start_consuming()

    def acknowledge(self, delivery: Delivery) -> None:
        self._channel.basic_ack(delivery_tag=delivery.delivery_tag)

    def reject(self, delivery: Delivery) -> None:
        logger.warning(
            "Rejecting delivery",
            extra={
                "delivery_tag": delivery.delivery_tag,
                "attempt": delivery.attempt,
                "max_attempts": self._config.queue_config.max_delivery_count,
            },
        )
        self._channel.basic_nack(delivery_tag=delivery.delivery_tag, requeue=True)

    def publish(self, routing_key: str, payload: dict[str, Any]) -> None:
        try:
            self._channel.basic_publish(
                exchange=self._config.exchange_name,
                routing_key=routing_key,
                body=json.dumps(payload),
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=pika.DeliveryMode.Persistent,
                ),
            )
        except Exception as e:
            logger.exception("RabbitMQ publish failed", extra={"routing_key": routing_key})
            raise EventPublishError(routing_key, e) from e

        logger.info(
            "Event published to RabbitMQ",
            extra={"exchange": self._config.exchange_name, "routing_key": routing_key},
        )

    def declare_topology(self) -> None:
        queue_config = self._config.queue_config

        self._channel.exchange_declare(
            exchange=queue_config.dlq_exchange_name, exchange_type="direct", durable=True
        )
        self._channel.queue_declare(queue=queue_config.dlq_name, durable=True)
        self._channel.queue_bind(
            queue=queue_config.dlq_name,
            exchange=queue_config.dlq_exchange_name,
            routing_key=queue_config.dlq_routing_key,
        )

        # Notifications and completion events share one topic exchange.
        self._channel.exchange_declare(
            exchange=self._config.exchange_name, exchange_type="topic", durable=True
        )
        self._channel.queue_declare(
            queue=queue_config.name,
            durable=True,
            arguments={
                "x-queue-type": queue_config.queue_type,
                "x-delivery-limit": queue_config.max_delivery_count,
                "x-dead-letter-exchange": queue_config.dlq_exchange_name,
                "x-dead-letter-routing-key": queue_config.dlq_routing_key,
            },
        )
        self._channel.queue_bind(
            queue=queue_config.name,
            exchange=self._config.exchange_name,
            routing_key=queue_config.expected_routing_key,
        )

        logger.info(
            "RabbitMQ topology declared",
            extra={
                "queue": queue_config.name,
                "dead_letter_queue": queue_config.dlq_name,
                "exchange": self._config.exchange_name,
            },
        )
