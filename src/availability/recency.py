"""Suppression of checks for sources that were checked moments ago."""

from __future__ import annotations

from datetime import datetime, timedelta

from availability.logging import get_logger
from availability.models import Application, Endpoint
from availability.resources import CheckContext

logger = get_logger(__name__)

# A sub-resource checked within this window is not checked again
LAST_CHECKED_AT_THRESHOLD = timedelta(minutes=5)


def checked_recently(
    resource: Endpoint | Application | None,
    now: datetime,
    threshold: timedelta = LAST_CHECKED_AT_THRESHOLD,
) -> bool:
    """Check whether a resource was checked inside the threshold window.

    Args:
        resource: Endpoint or application, possibly None.
        now: Current time (timezone-aware).
        threshold: Length of the suppression window.

    Returns:
        True iff the resource has a last_checked_at and
        ``now - last_checked_at < threshold``.
    """
    if resource is None or resource.last_checked_at is None:
        return False
    return now - resource.last_checked_at < threshold


def should_skip(
    context: CheckContext,
    now: datetime,
    threshold: timedelta = LAST_CHECKED_AT_THRESHOLD,
) -> bool:
    """Decide whether a run must stop because the source was just checked.

    The endpoint decides when present; otherwise the application does.

    Args:
        context: Run context with endpoint and application resolved.
        now: Current time (timezone-aware).
        threshold: Length of the suppression window.

    Returns:
        True if the run should end as skipped.
    """
    resource: Endpoint | Application | None = context.endpoint or context.application
    if resource is None or not checked_recently(resource, now, threshold):
        return False

    logger.with_context(**context.log_context).info(
        "Skipping, last check at %s [Source ID: %s]",
        resource.last_checked_at.isoformat() if resource.last_checked_at else None,
        context.source_id,
    )
    return True
