"""Data classes for Sources API records and availability check results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from availability.types import AvailabilityStatus

# Password placeholder used by source types whose endpoints need no credentials
AUTH_NOT_NECESSARY = "n/a"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp from the Sources API.

    A trailing ``Z`` is accepted and naive values are taken as UTC.

    Args:
        value: Raw value from an API response.

    Returns:
        Timezone-aware datetime, or None if the value is empty or unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a datetime as the ISO 8601 UTC string written to the API."""
    return value.astimezone(UTC).isoformat()


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True)
class CheckRequest:
    """Parameters of a single availability check.

    Attributes:
        source_id: Sources API id of the source to check.
        account_identifier: Tenant account number used to build the identity.
    """

    source_id: str | None
    account_identifier: str | None = None

    # Request fields that must be present and non-blank
    REQUIRED_PARAMS = ("source_id",)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> CheckRequest:
        """Create a request from caller-supplied parameters.

        Args:
            params: Mapping with ``source_id`` and optional ``external_tenant``.

        Returns:
            CheckRequest instance.
        """
        return cls(
            source_id=_optional_str(params.get("source_id")),
            account_identifier=_optional_str(params.get("external_tenant")),
        )

    def missing_params(self) -> list[str]:
        """Return the names of required parameters that are blank or missing."""
        missing = []
        for name in self.REQUIRED_PARAMS:
            value = getattr(self, name)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing


@dataclass(frozen=True)
class Endpoint:
    """Network-reachable sub-resource of a source."""

    id: str
    scheme: str | None = None
    host: str | None = None
    port: int | None = None
    path: str | None = None
    verify_ssl: bool = True
    receptor_node: str | None = None
    availability_status: str | None = None
    availability_status_error: str | None = None
    last_checked_at: datetime | None = None
    last_available_at: datetime | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Endpoint:
        """Create an Endpoint from Sources API response data.

        Args:
            data: Raw endpoint record.

        Returns:
            Endpoint instance.
        """
        port = data.get("port")
        return cls(
            id=str(data["id"]),
            scheme=data.get("scheme"),
            host=data.get("host"),
            port=int(port) if port not in (None, "") else None,
            path=data.get("path"),
            verify_ssl=bool(data.get("verify_ssl", True)),
            receptor_node=data.get("receptor_node"),
            availability_status=data.get("availability_status"),
            availability_status_error=data.get("availability_status_error"),
            last_checked_at=parse_timestamp(data.get("last_checked_at")),
            last_available_at=parse_timestamp(data.get("last_available_at")),
        )


@dataclass(frozen=True)
class Application:
    """Integration sub-resource whose own status can stand in for a probe."""

    id: str
    application_type_id: str | None = None
    availability_status: str | None = None
    last_checked_at: datetime | None = None
    last_available_at: datetime | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Application:
        """Create an Application from Sources API response data.

        Args:
            data: Raw application record.

        Returns:
            Application instance.
        """
        return cls(
            id=str(data["id"]),
            application_type_id=_optional_str(data.get("application_type_id")),
            availability_status=data.get("availability_status"),
            last_checked_at=parse_timestamp(data.get("last_checked_at")),
            last_available_at=parse_timestamp(data.get("last_available_at")),
        )


@dataclass(frozen=True)
class Authentication:
    """Credentials attached to an endpoint."""

    id: str
    authtype: str | None = None
    username: str | None = None
    password: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Authentication:
        """Create an Authentication from Sources API response data.

        Args:
            data: Raw authentication record.

        Returns:
            Authentication instance.
        """
        return cls(
            id=str(data["id"]),
            authtype=data.get("authtype"),
            username=data.get("username"),
            password=data.get("password"),
            resource_type=data.get("resource_type"),
            resource_id=_optional_str(data.get("resource_id")),
        )

    def __repr__(self) -> str:
        # Keep passwords out of logs and tracebacks
        return (
            f"Authentication(id={self.id!r}, authtype={self.authtype!r}, "
            f"username={self.username!r}, password=***)"
        )


@dataclass(frozen=True)
class CheckResult:
    """Status computed by one availability check.

    Attributes:
        status: AVAILABLE or UNAVAILABLE.
        error_message: Human-readable reason, None when available.
    """

    status: AvailabilityStatus
    error_message: str | None = None

    @property
    def is_available(self) -> bool:
        """Check if the source was found available."""
        return self.status == AvailabilityStatus.AVAILABLE
