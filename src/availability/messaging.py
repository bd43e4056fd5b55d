"""Event publication for availability status changes.

Events go to a Kafka topic through a Kafka REST proxy (v2 API), so the
publisher needs nothing beyond an HTTP client.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Self

import httpx

from availability.http_client import DEFAULT_TIMEOUT, BaseHttpClient, error_detail
from availability.logging import get_logger

logger = get_logger(__name__)

# Topic that consumers of source status changes listen on
SERVICE_NAME = "platform.sources.status"
# Event name identifying an availability status change
EVENT_AVAILABILITY_STATUS = "availability_status"

KAFKA_JSON_CONTENT_TYPE = "application/vnd.kafka.json.v2+json"


class MessagingError(Exception):
    """Raised when an event cannot be published."""

    pass


class EventPublisher(ABC):
    """Abstract interface for the event bus.

    A publisher holds a connection and must be closed after use; it is a
    context manager for that purpose.
    """

    @abstractmethod
    def publish(self, service_name: str, event_name: str, payload: str) -> None:
        """Publish one event.

        Args:
            service_name: Topic identifier.
            event_name: Event type identifier.
            payload: JSON-encoded event body.

        Raises:
            MessagingError: If the event could not be published.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the publisher's connection."""
        pass

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# Factory creating a fresh publisher for each batch of events
PublisherFactory = Callable[[], EventPublisher]


class KafkaRestPublisher(BaseHttpClient, EventPublisher):
    """Publisher that produces records through a Kafka REST proxy.

    Each event becomes one record keyed by the event name, with the decoded
    payload as its JSON value.
    """

    def __init__(self, base_url: str, timeout: httpx.Timeout | None = None) -> None:
        """Initialize the publisher.

        Args:
            base_url: REST proxy origin (e.g., "http://kafka-rest:8082").
            timeout: Optional custom timeout configuration.
        """
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._headers = {
            "Content-Type": KAFKA_JSON_CONTENT_TYPE,
            "Accept": "application/vnd.kafka.v2+json",
        }

    def publish(self, service_name: str, event_name: str, payload: str) -> None:
        url = f"{self.base_url}/topics/{service_name}"
        try:
            value = json.loads(payload)
        except ValueError as e:
            raise MessagingError(f"Event payload is not valid JSON: {e}") from e

        body = {"records": [{"key": event_name, "value": value}]}
        logger.debug("Publishing %s to %s", event_name, service_name)

        try:
            response = self._get_client().post(url, content=json.dumps(body))
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise MessagingError(f"Publish to {service_name} timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            error_msg = f"Publish to {service_name} failed with status {e.response.status_code}"
            detail = error_detail(e.response)
            if detail:
                error_msg += f": {detail}"
            raise MessagingError(error_msg) from e
        except httpx.RequestError as e:
            raise MessagingError(f"Publish to {service_name} request failed: {e}") from e

        # The proxy reports per-record failures inside a 200 response
        try:
            offsets = response.json().get("offsets") or []
        except (ValueError, AttributeError):
            offsets = []
        for offset in offsets:
            if isinstance(offset, dict) and offset.get("error"):
                raise MessagingError(f"Publish to {service_name} rejected: {offset['error']}")
