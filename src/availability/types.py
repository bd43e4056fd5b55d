"""Type definitions and enums for the availability checker.

This module provides centralized type definitions replacing magic strings
throughout the codebase with type-safe constants.

Usage:
    from availability.types import AvailabilityStatus, OperationStatus

    # StrEnum members compare equal to their string values
    if application.availability_status == AvailabilityStatus.AVAILABLE:
        ...

    AvailabilityStatus.is_valid("available")  # True
"""

from __future__ import annotations

from enum import StrEnum


class AvailabilityStatus(StrEnum):
    """Availability of a source or one of its sub-resources.

    Values:
        AVAILABLE: The resource answered the connectivity check ("available")
        UNAVAILABLE: The resource could not be reached ("unavailable")
    """

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string value is a valid availability status.

        Args:
            value: The string value to validate.

        Returns:
            True if the value matches a valid availability status.
        """
        return value in cls._value2member_map_


class OperationStatus(StrEnum):
    """Terminal outcome of a single availability check invocation.

    Values:
        ERROR: Required request parameters were missing ("error")
        SKIPPED: The source was checked too recently ("skipped")
        SUCCESS: A status was computed and propagated ("success")
    """

    ERROR = "error"
    SKIPPED = "skipped"
    SUCCESS = "success"


class PropagationMode(StrEnum):
    """How a computed status is written back.

    Values:
        DIRECT: PATCH each record through the Sources API ("direct")
        EVENT: Publish one availability event per record ("event")
    """

    DIRECT = "direct"
    EVENT = "event"

    @classmethod
    def from_update_via_api(cls, update_via_api: str | None) -> PropagationMode:
        """Select the mode from the ``UPDATE_SOURCES_VIA_API`` switch.

        Any non-blank value selects direct API updates; blank or unset
        selects event publication.

        Args:
            update_via_api: Raw switch value, possibly None.

        Returns:
            The selected propagation mode.
        """
        if update_via_api is not None and update_via_api.strip():
            return cls.DIRECT
        return cls.EVENT


class ResourceType(StrEnum):
    """Resource types carried in availability events."""

    SOURCE = "Source"
    ENDPOINT = "Endpoint"
    APPLICATION = "Application"
