"""Availability check orchestration.

Sequences one run: validate the request, resolve the source's resources,
stop early if they were checked moments ago, compute the status and
propagate it. The outcome is always one of ``OperationStatus``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from availability.connectivity import ConnectivityProbe, ConnectivityResolver, unimplemented_probe
from availability.identity import IdentityHeaders, identity_by_account_number
from availability.logging import get_logger
from availability.messaging import PublisherFactory
from availability.metrics import Metrics
from availability.models import CheckRequest
from availability.propagation import PropagationDispatcher
from availability.recency import LAST_CHECKED_AT_THRESHOLD, should_skip
from availability.resources import OPERATION, Clock, ResourceAccessor, utc_now
from availability.sources_api import SourcesApi
from availability.types import OperationStatus, PropagationMode

logger = get_logger(__name__)

IdentityResolver = Callable[[str | None], IdentityHeaders]


class AvailabilityChecker:
    """Checks and records the availability of sources.

    One checker serves any number of runs; it holds only read-only
    configuration and collaborators. Each call to ``availability_check``
    builds its own context and check time.

    Usage:
        checker = AvailabilityChecker(
            sources_api=SourcesApiClient(config.sources_api_url),
            probe=HttpEndpointProbe(),
            mode=config.propagation_mode,
            publisher_factory=lambda: KafkaRestPublisher(config.event_bus_url),
        )
        checker.availability_check({"source_id": "42", "external_tenant": "1234"})
    """

    def __init__(
        self,
        sources_api: SourcesApi,
        probe: ConnectivityProbe = unimplemented_probe,
        mode: PropagationMode = PropagationMode.EVENT,
        publisher_factory: PublisherFactory | None = None,
        metrics: Metrics | None = None,
        identity_resolver: IdentityResolver = identity_by_account_number,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the checker.

        Args:
            sources_api: Sources API; bound to each request's identity per run.
            probe: Connection check for endpoints of this source type.
            mode: Propagation strategy, fixed for the checker's lifetime.
            publisher_factory: Creates event publishers; required in EVENT mode.
            metrics: Optional error counter for failed updates.
            identity_resolver: Maps an account number to identity headers.
            clock: Time source for recency checks and check times.

        Raises:
            ValueError: If EVENT mode is requested without a publisher factory.
        """
        if mode == PropagationMode.EVENT and publisher_factory is None:
            raise ValueError("Event propagation requires a publisher factory")
        self.mode = mode
        self._sources_api = sources_api
        self._probe = probe
        self._publisher_factory = publisher_factory
        self._metrics = metrics
        self._identity_resolver = identity_resolver
        self._clock = clock

    def availability_check(self, request: CheckRequest | Mapping[str, Any]) -> OperationStatus:
        """Run one availability check.

        Args:
            request: CheckRequest, or raw parameters with ``source_id`` and
                optional ``external_tenant``.

        Returns:
            ERROR if required parameters are missing, SKIPPED if the source
            was checked within the last five minutes, SUCCESS otherwise.

        Raises:
            NotImplementedError: If the probe does not support the source.
            SourcesApiError: If resolving the source's resources fails.
        """
        if not isinstance(request, CheckRequest):
            request = CheckRequest.from_params(request)

        log = logger.with_context(operation=OPERATION, source_id=request.source_id)

        missing = request.missing_params()
        if missing:
            log.error(
                "Missing %s for the availability_check request [Source ID: %s]",
                missing[0],
                request.source_id,
            )
            return OperationStatus.ERROR

        # Validated above
        source_id: str = request.source_id  # type: ignore[assignment]

        sources_api = self._sources_api.with_identity(
            self._identity_resolver(request.account_identifier)
        )
        accessor = ResourceAccessor(sources_api, clock=self._clock)
        context = accessor.load(source_id)

        if should_skip(context, self._clock(), LAST_CHECKED_AT_THRESHOLD):
            return OperationStatus.SKIPPED

        result = ConnectivityResolver(self._probe, accessor).resolve(context)

        dispatcher = PropagationDispatcher(
            self.mode,
            sources_api,
            publisher_factory=self._publisher_factory,
            metrics=self._metrics,
        )
        dispatcher.propagate(context, result)

        log.info(
            "Completed: Source %s is %s",
            source_id,
            result.status,
            extra={"status": str(result.status)},
        )
        return OperationStatus.SUCCESS
