"""Error counters for availability propagation failures.

The checker depends on the ``Metrics`` protocol rather than on
prometheus-client directly; tests inject an in-memory fake.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from prometheus_client import CollectorRegistry, Counter

# Error kinds recorded by the propagation dispatcher
SOURCES_API_ERROR = "sources_api"
MESSAGING_ERROR = "messaging"


@runtime_checkable
class Metrics(Protocol):
    """Protocol for availability check error metrics."""

    def record_error(self, kind: str) -> None:
        """Count one failed update or publish.

        Args:
            kind: Error category, e.g. ``sources_api`` or ``messaging``.
        """
        ...


class PrometheusMetrics:
    """Prometheus-backed error counter.

    Uses its own CollectorRegistry unless one is supplied, so several
    instances can coexist in one process (tests, embedded use).
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()
        self._errors = Counter(
            "availability_check_errors",
            "Failed Sources API updates and event publications",
            ["type"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Registry holding this instance's collectors."""
        return self._registry

    def record_error(self, kind: str) -> None:
        self._errors.labels(type=kind).inc()
