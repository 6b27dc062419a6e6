"""Worker that handles queue message consumption and orchestration."""

import asyncio
import json
from collections.abc import Callable
from typing import Any

from media_transcoder.config import PipelineConfig, RabbitMQConfig, load_pipeline_config
from media_transcoder.domain import Invocation, PipelineResult
from media_transcoder.exceptions import ConfigurationError, EventPublishError
from media_transcoder.handlers import PipelineDriver, build_pipeline_driver
from media_transcoder.infrastructure.interfaces import Delivery, MessageBroker, StorageAdapter
from media_transcoder.logging import setup_logging

logger = setup_logging()


class Worker:
    """Consumes bucket notifications and runs one pipeline per message."""

    def __init__(
        self,
        broker: MessageBroker,
        storage: StorageAdapter,
        config: RabbitMQConfig,
        config_loader: Callable[[], PipelineConfig] = load_pipeline_config,
        driver_factory: Callable[
            [PipelineConfig, StorageAdapter], PipelineDriver
        ] = build_pipeline_driver,
    ):
        self._broker = broker
        self._storage = storage
        self._config = config
        self._config_loader = config_loader
        self._driver_factory = driver_factory

    def start(self) -> None:
        """Starts consuming messages from the queue."""
        logger.info("Worker initialized, starting message consumption")
        self._broker.consume(self._on_message)

    def _on_message(self, delivery: Delivery) -> None:
        """Runs one pipeline for a delivery and settles it with the broker."""
        logger.info(
            "Message received",
            extra={
                "delivery_tag": delivery.delivery_tag,
                "attempt": delivery.attempt,
                "max_attempts": self._config.queue_config.max_delivery_count,
            },
        )

        try:
            event = json.loads(delivery.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.exception("Invalid message format", extra={"error": str(e)})
            self._broker.reject(delivery)
            return

        try:
            pipeline_config = self._config_loader()
        except ConfigurationError:
            logger.exception("Pipeline configuration is invalid")
            self._broker.reject(delivery)
            return

        outcome: dict[str, Any] = {}

        def complete(error: Exception | None, result: PipelineResult | None) -> None:
            outcome["error"] = error
            outcome["result"] = result

        driver = self._driver_factory(pipeline_config, self._storage)
        asyncio.run(driver.run(Invocation(event=event, complete=complete)))

        if outcome["error"] is not None:
            logger.error(
                "Message processing failed",
                extra={
                    "error_type": type(outcome["error"]).__name__,
                    "error": str(outcome["error"]),
                },
            )
            self._broker.reject(delivery)
            return

        result: PipelineResult = outcome["result"]
        self._broker.acknowledge(delivery)

        try:
            self._broker.publish(
                routing_key=self._config.queue_config.success_routing_key,
                payload=completion_payload(result),
            )
        except EventPublishError:
            logger.exception(
                "Completion event could not be published",
                extra={"source_key": result.source.key},
            )
            return

        logger.info(
            "Message processed successfully",
            extra={
                "source_key": result.source.key,
                "derivatives": [d.key for d in result.derivatives],
            },
        )


def completion_payload(result: PipelineResult) -> dict[str, Any]:
    """Builds the body of the success event for a finished pipeline."""
    return {
        "bucket_name": result.source.bucket,
        "source_key": result.source.key,
        "derivatives": [
            {
                "key": d.key,
                "content_type": d.content_type,
                "content_encoding": d.content_encoding,
                "sha256": d.sha256,
                "size": d.size,
            }
            for d in result.derivatives
        ],
    }
