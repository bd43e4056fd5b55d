"""Connectivity resolution: turn a source's resources into a status.

A source is checked through its endpoint when it has one, using a
provider-specific ``ConnectivityProbe``. A source with only an application
takes the application's own reported status.
"""

from __future__ import annotations

from typing import Protocol

from availability.logging import ContextAdapter, get_logger
from availability.models import Application, Authentication, CheckResult, Endpoint
from availability.resources import CheckContext, ResourceAccessor
from availability.types import AvailabilityStatus

logger = get_logger(__name__)

ERROR_MESSAGES = {
    "authentication_not_found": "Authentication not found in Sources API",
    "endpoint_or_application_not_found": "Endpoint or Application not found in Sources API",
}


class ConnectivityProbe(Protocol):
    """Live connectivity test for one source type.

    Implementations receive a validated endpoint and its authentication and
    return the status plus an optional human-readable error. They must not
    raise for ordinary connectivity failures; ``NotImplementedError`` is
    reserved for unsupported configurations.
    """

    def __call__(
        self, endpoint: Endpoint, authentication: Authentication
    ) -> tuple[AvailabilityStatus | str, str | None]: ...


def unimplemented_probe(
    endpoint: Endpoint, authentication: Authentication
) -> tuple[AvailabilityStatus, str | None]:
    """Default probe for checkers built without one.

    Raises:
        NotImplementedError: Always; every source type must supply a probe.
    """
    raise NotImplementedError("connection check must be supplied for this source type")


class ConnectivityResolver:
    """Computes the CheckResult of a run."""

    def __init__(self, probe: ConnectivityProbe, accessor: ResourceAccessor) -> None:
        """Initialize the resolver.

        Args:
            probe: Connection check for endpoints of this source type.
            accessor: Used to fetch the endpoint's authentication.
        """
        self._probe = probe
        self._accessor = accessor

    def resolve(self, context: CheckContext) -> CheckResult:
        """Compute the availability of the context's source.

        Args:
            context: Run context with endpoint and application resolved.

        Returns:
            The run's CheckResult.

        Raises:
            NotImplementedError: If the probe does not support the source.
            SourcesApiError: If the authentication lookup fails.
        """
        if not context.has_subresource:
            return CheckResult(
                AvailabilityStatus.UNAVAILABLE,
                ERROR_MESSAGES["endpoint_or_application_not_found"],
            )

        context.ensure_check_time()
        log = logger.with_context(**context.log_context)
        if context.endpoint is not None:
            return self._endpoint_check(context, context.endpoint, log)
        return self._application_check(context.application, log)  # type: ignore[arg-type]

    def _endpoint_check(
        self, context: CheckContext, endpoint: Endpoint, log: ContextAdapter
    ) -> CheckResult:
        authentication = self._accessor.load_authentication(context)
        if authentication is None:
            return CheckResult(
                AvailabilityStatus.UNAVAILABLE,
                ERROR_MESSAGES["authentication_not_found"],
            )

        try:
            status, error_message = self._probe(endpoint, authentication)
        except NotImplementedError:
            raise
        except Exception as e:
            # Probes should report failures, not raise them
            log.exception(
                "Connection check raised for Endpoint(ID: %s) [Source ID: %s]",
                endpoint.id,
                context.source_id,
            )
            return CheckResult(AvailabilityStatus.UNAVAILABLE, str(e) or type(e).__name__)

        return _normalize(status, error_message, log)

    def _application_check(self, application: Application, log: ContextAdapter) -> CheckResult:
        if application.availability_status == AvailabilityStatus.AVAILABLE:
            return CheckResult(AvailabilityStatus.AVAILABLE)
        if application.availability_status == AvailabilityStatus.UNAVAILABLE:
            return CheckResult(
                AvailabilityStatus.UNAVAILABLE,
                f"Application id {application.id} unavailable",
            )

        log.warning(
            "Application id %s has unknown availability status %r",
            application.id,
            application.availability_status,
        )
        return CheckResult(
            AvailabilityStatus.UNAVAILABLE,
            f"Application id {application.id} has unknown availability status "
            f"'{application.availability_status}'",
        )


def _normalize(
    status: AvailabilityStatus | str, error_message: str | None, log: ContextAdapter
) -> CheckResult:
    if isinstance(status, str) and AvailabilityStatus.is_valid(status):
        return CheckResult(AvailabilityStatus(status), error_message or None)

    log.warning("Connection check returned unknown status %r", status)
    return CheckResult(
        AvailabilityStatus.UNAVAILABLE,
        error_message or f"Connection check returned unknown status '{status}'",
    )
