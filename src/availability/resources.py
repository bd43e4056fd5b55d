"""Per-run resource resolution for an availability check.

``CheckContext`` holds everything one run learns about a source: its
endpoint, application and authentication, each fetched at most once, plus
the single check time written to every record the run updates.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from availability.logging import get_logger
from availability.models import Application, Authentication, Endpoint
from availability.sources_api import SourcesApi

logger = get_logger(__name__)

Clock = Callable[[], datetime]

# Operation name carried by every log line of an availability check run
OPERATION = "Source#availability_check"


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


@dataclass
class CheckContext:
    """State of one availability check run.

    Attributes:
        source_id: Id of the source being checked.
        endpoint: The source's endpoint, None if it has none.
        application: The source's application, None if it has none.
        authentication: The endpoint's authentication, None until fetched or
            if the endpoint has none.
        authentication_loaded: Whether the authentication lookup already ran.
        check_time: Timestamp shared by every update of the run, None until
            first needed.
        clock: Time source used to set check_time.
    """

    source_id: str
    endpoint: Endpoint | None = None
    application: Application | None = None
    authentication: Authentication | None = None
    authentication_loaded: bool = False
    check_time: datetime | None = None
    clock: Clock = field(default=utc_now, repr=False, compare=False)

    @property
    def log_context(self) -> dict[str, str]:
        """Context fields attached to every log line of the run."""
        return {"operation": OPERATION, "source_id": self.source_id}

    @property
    def has_subresource(self) -> bool:
        """Check if the source has an endpoint or an application."""
        return self.endpoint is not None or self.application is not None

    def ensure_check_time(self) -> datetime:
        """Return the run's check time, capturing it on first call."""
        if self.check_time is None:
            self.check_time = self.clock()
        return self.check_time


class ResourceAccessor:
    """Fetches a source's sub-resources through the Sources API.

    A missing resource is a normal outcome and yields None. API failures
    are not handled here; they propagate to the caller.
    """

    def __init__(self, sources_api: SourcesApi, clock: Clock = utc_now) -> None:
        self._sources_api = sources_api
        self._clock = clock

    def load(self, source_id: str) -> CheckContext:
        """Fetch the endpoint and application of a source.

        Args:
            source_id: Id of the source.

        Returns:
            A fresh CheckContext for the run.

        Raises:
            SourcesApiError: If a lookup fails.
        """
        endpoint = self._sources_api.get_endpoint(source_id)
        application = self._sources_api.get_application(source_id)
        logger.with_context(operation=OPERATION, source_id=source_id).debug(
            "Resolved source %s: endpoint=%s application=%s",
            source_id,
            endpoint.id if endpoint else None,
            application.id if application else None,
        )
        return CheckContext(
            source_id=source_id,
            endpoint=endpoint,
            application=application,
            clock=self._clock,
        )

    def load_authentication(self, context: CheckContext) -> Authentication | None:
        """Fetch the endpoint's authentication once and keep it on the context.

        Args:
            context: Run context; must already hold the endpoint, if any.

        Returns:
            The authentication, or None if there is no endpoint or no
            authentication.

        Raises:
            SourcesApiError: If the lookup fails.
        """
        if not context.authentication_loaded:
            if context.endpoint is not None:
                context.authentication = self._sources_api.get_authentication(
                    context.endpoint.id
                )
            context.authentication_loaded = True
        return context.authentication
