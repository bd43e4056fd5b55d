"""Propagation of a computed status to a source and its sub-resources.

Two strategies, chosen once per process by ``PropagationMode``:

- DIRECT: PATCH the source, endpoint and application through the Sources API.
- EVENT: publish one availability event per record and let the Sources
  service apply them.

A failure for one record is logged and counted; the remaining records are
still updated and the run's outcome is unaffected.
"""

from __future__ import annotations

import json
from typing import Any

from availability.logging import ContextAdapter, get_logger
from availability.messaging import (
    EVENT_AVAILABILITY_STATUS,
    SERVICE_NAME,
    EventPublisher,
    PublisherFactory,
)
from availability.metrics import MESSAGING_ERROR, SOURCES_API_ERROR, Metrics
from availability.models import CheckResult, format_timestamp
from availability.resources import CheckContext
from availability.sources_api import SourcesApi, SourcesApiError
from availability.types import AvailabilityStatus, PropagationMode, ResourceType

logger = get_logger(__name__)


class PropagationDispatcher:
    """Writes one CheckResult to every resource of a run."""

    def __init__(
        self,
        mode: PropagationMode,
        sources_api: SourcesApi,
        publisher_factory: PublisherFactory | None = None,
        metrics: Metrics | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            mode: Propagation strategy.
            sources_api: Identity-bound API used in DIRECT mode.
            publisher_factory: Creates the event publisher used in EVENT mode.
            metrics: Optional error counter.

        Raises:
            ValueError: If EVENT mode is requested without a publisher factory.
        """
        if mode == PropagationMode.EVENT and publisher_factory is None:
            raise ValueError("Event propagation requires a publisher factory")
        self.mode = mode
        self._sources_api = sources_api
        self._publisher_factory = publisher_factory
        self._metrics = metrics

    def propagate(self, context: CheckContext, result: CheckResult) -> None:
        """Update the source and each resolved sub-resource with the result.

        Args:
            context: Run context; supplies resources and the check time.
            result: Status to propagate.
        """
        log = logger.with_context(**context.log_context)
        log.info(
            "Updating source [%s] status [%s] message [%s]",
            context.source_id,
            result.status,
            result.error_message or "",
            extra={"status": str(result.status)},
        )

        if self.mode == PropagationMode.EVENT:
            self._publish_events(context, result, log)
        else:
            self._update_via_api(context, result, log)

    # -- direct mode --

    def _update_via_api(
        self, context: CheckContext, result: CheckResult, log: ContextAdapter
    ) -> None:
        check_time = format_timestamp(context.ensure_check_time())

        def timestamps() -> dict[str, Any]:
            patch: dict[str, Any] = {"last_checked_at": check_time}
            if result.status == AvailabilityStatus.AVAILABLE:
                patch["last_available_at"] = check_time
            return patch

        source_patch = {"availability_status": str(result.status), **timestamps()}
        self._api_update(ResourceType.SOURCE, context.source_id, source_patch, log)

        if context.endpoint is not None:
            endpoint_patch = {
                "availability_status": str(result.status),
                "availability_status_error": result.error_message or "",
                **timestamps(),
            }
            self._api_update(ResourceType.ENDPOINT, context.endpoint.id, endpoint_patch, log)

        if context.application is not None:
            # Applications only receive check timestamps, never a status
            self._api_update(ResourceType.APPLICATION, context.application.id, timestamps(), log)

    def _api_update(
        self,
        resource_type: ResourceType,
        resource_id: str,
        patch: dict[str, Any],
        log: ContextAdapter,
    ) -> None:
        update = {
            ResourceType.SOURCE: self._sources_api.update_source,
            ResourceType.ENDPOINT: self._sources_api.update_endpoint,
            ResourceType.APPLICATION: self._sources_api.update_application,
        }[resource_type]

        try:
            update(resource_id, patch)
        except SourcesApiError as e:
            self._record_error(SOURCES_API_ERROR)
            log.error(
                "Failed to update %s(ID: %s) - %s",
                resource_type,
                resource_id,
                e,
                extra={"resource_type": str(resource_type), "resource_id": resource_id},
            )

    # -- event mode --

    def _publish_events(
        self, context: CheckContext, result: CheckResult, log: ContextAdapter
    ) -> None:
        payloads: list[dict[str, Any]] = [
            {
                "resource_type": str(ResourceType.SOURCE),
                "resource_id": context.source_id,
                "status": str(result.status),
            }
        ]
        if context.endpoint is not None:
            payloads.append(
                {
                    "resource_type": str(ResourceType.ENDPOINT),
                    "resource_id": context.endpoint.id,
                    "status": str(result.status),
                    "error": result.error_message,
                }
            )
        if context.application is not None:
            payloads.append(
                {
                    "resource_type": str(ResourceType.APPLICATION),
                    "resource_id": context.application.id,
                    "status": str(result.status),
                }
            )

        try:
            publisher = self._publisher_factory()  # type: ignore[misc]
        except Exception as e:
            self._record_error(MESSAGING_ERROR)
            log.error(
                "Failed to open event publisher for Source(ID: %s) - %s",
                context.source_id,
                e,
            )
            return

        try:
            for payload in payloads:
                self._publish(publisher, payload, log)
        finally:
            self._close(publisher, log)

    def _publish(
        self, publisher: EventPublisher, payload: dict[str, Any], log: ContextAdapter
    ) -> None:
        try:
            publisher.publish(SERVICE_NAME, EVENT_AVAILABILITY_STATUS, json.dumps(payload))
        except Exception as e:
            self._record_error(MESSAGING_ERROR)
            log.error(
                "Failed to publish availability status for %s(ID: %s) - %s",
                payload["resource_type"],
                payload["resource_id"],
                e,
                extra={
                    "resource_type": payload["resource_type"],
                    "resource_id": payload["resource_id"],
                },
            )

    def _close(self, publisher: EventPublisher, log: ContextAdapter) -> None:
        try:
            publisher.close()
        except Exception as e:
            self._record_error(MESSAGING_ERROR)
            log.error("Failed to close event publisher - %s", e)

    def _record_error(self, kind: str) -> None:
        if self._metrics is not None:
            self._metrics.record_error(kind)
