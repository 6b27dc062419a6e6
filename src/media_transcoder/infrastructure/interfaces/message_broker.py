"""Abstract interface for the queue that feeds bucket notifications to the worker."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel


class Delivery(BaseModel, frozen=True):
    """One message taken off the notification queue."""

    body: bytes
    delivery_tag: int
    attempt: int = 1
    headers: dict[str, Any] = {}


class MessageBroker(ABC):
    """Delivers notifications one at a time and carries completion events back out."""

    @abstractmethod
    def consume(self, callback: Callable[[Delivery], None]) -> None:
        """
        Blocks, handing each queued notification to callback.

        The callback settles every delivery with acknowledge() or reject().
        """

    @abstractmethod
    def acknowledge(self, delivery: Delivery) -> None:
        """Marks a delivery as processed; it will not be redelivered."""

    @abstractmethod
    def reject(self, delivery: Delivery) -> None:
        """
        Returns a delivery to the queue.

        Once the queue's delivery limit is reached the broker dead-letters it
        instead.
        """

    @abstractmethod
    def publish(self, routing_key: str, payload: dict[str, Any]) -> None:
        """
        Publishes a JSON event.

        Raises:
            EventPublishError: If publishing fails.
        """

    @abstractmethod
    def declare_topology(self) -> None:
        """Declares the exchanges, queues and bindings the worker relies on."""
