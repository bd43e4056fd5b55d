"""Tests for status propagation."""

from __future__ import annotations

import json

import pytest

from availability.messaging import EVENT_AVAILABILITY_STATUS, SERVICE_NAME
from availability.models import CheckResult
from availability.propagation import PropagationDispatcher
from availability.resources import CheckContext
from availability.types import AvailabilityStatus, PropagationMode
from tests.mocks import (
    NOW,
    FakeMetrics,
    FakePublisher,
    FakeSourcesApi,
    FixedClock,
    make_application,
    make_endpoint,
)

AVAILABLE = CheckResult(AvailabilityStatus.AVAILABLE)
UNAVAILABLE = CheckResult(AvailabilityStatus.UNAVAILABLE, "Connection refused")


def full_context(clock: FixedClock | None = None) -> CheckContext:
    return CheckContext(
        source_id="42",
        endpoint=make_endpoint(id="7"),
        application=make_application(id="9"),
        clock=clock or FixedClock(),
    )


class TestConstruction:
    """Tests for PropagationDispatcher construction."""

    def test_event_mode_requires_factory(self) -> None:
        with pytest.raises(ValueError):
            PropagationDispatcher(PropagationMode.EVENT, FakeSourcesApi())


class TestDirectMode:
    """Tests for DIRECT propagation."""

    def test_source_only(self) -> None:
        api = FakeSourcesApi()
        dispatcher = PropagationDispatcher(PropagationMode.DIRECT, api)

        dispatcher.propagate(CheckContext(source_id="42", clock=FixedClock()), AVAILABLE)

        assert api.updates == [
            (
                "source",
                "42",
                {
                    "availability_status": "available",
                    "last_checked_at": NOW.isoformat(),
                    "last_available_at": NOW.isoformat(),
                },
            )
        ]

    def test_all_resources_available(self) -> None:
        api = FakeSourcesApi()
        dispatcher = PropagationDispatcher(PropagationMode.DIRECT, api)

        dispatcher.propagate(full_context(), AVAILABLE)

        timestamp = NOW.isoformat()
        assert api.updates == [
            (
                "source",
                "42",
                {
                    "availability_status": "available",
                    "last_checked_at": timestamp,
                    "last_available_at": timestamp,
                },
            ),
            (
                "endpoint",
                "7",
                {
                    "availability_status": "available",
                    "availability_status_error": "",
                    "last_checked_at": timestamp,
                    "last_available_at": timestamp,
                },
            ),
            (
                "application",
                "9",
                {"last_checked_at": timestamp, "last_available_at": timestamp},
            ),
        ]

    def test_unavailable_omits_last_available_at(self) -> None:
        api = FakeSourcesApi()
        dispatcher = PropagationDispatcher(PropagationMode.DIRECT, api)

        dispatcher.propagate(full_context(), UNAVAILABLE)

        assert api.updates_for("endpoint") == [
            {
                "availability_status": "unavailable",
                "availability_status_error": "Connection refused",
                "last_checked_at": NOW.isoformat(),
            }
        ]
        assert api.updates_for("application") == [{"last_checked_at": NOW.isoformat()}]
        assert api.updates_for("source")[0]["availability_status"] == "unavailable"

    def test_application_patch_has_no_status(self) -> None:
        api = FakeSourcesApi()
        PropagationDispatcher(PropagationMode.DIRECT, api).propagate(full_context(), AVAILABLE)

        [patch] = api.updates_for("application")
        assert "availability_status" not in patch

    def test_reuses_existing_check_time(self) -> None:
        clock = FixedClock()
        context = full_context(clock)
        context.ensure_check_time()
        clock.now = clock.now.replace(hour=13)

        api = FakeSourcesApi()
        PropagationDispatcher(PropagationMode.DIRECT, api).propagate(context, AVAILABLE)

        assert {patch["last_checked_at"] for _, _, patch in api.updates} == {NOW.isoformat()}
        assert clock.calls == 1

    def test_failure_is_isolated_and_counted(self, caplog: pytest.LogCaptureFixture) -> None:
        api = FakeSourcesApi(fail_updates={"endpoint"})
        metrics = FakeMetrics()
        dispatcher = PropagationDispatcher(PropagationMode.DIRECT, api, metrics=metrics)

        with caplog.at_level("ERROR"):
            dispatcher.propagate(full_context(), AVAILABLE)

        assert [kind for kind, _, _ in api.updates] == ["source", "endpoint", "application"]
        assert metrics.errors == ["sources_api"]
        assert "Failed to update Endpoint(ID: 7)" in caplog.text

    def test_failure_without_metrics(self) -> None:
        api = FakeSourcesApi(fail_updates={"source", "endpoint", "application"})
        dispatcher = PropagationDispatcher(PropagationMode.DIRECT, api)

        dispatcher.propagate(full_context(), AVAILABLE)

        assert len(api.updates) == 3


class TestEventMode:
    """Tests for EVENT propagation."""

    def test_publishes_one_event_per_resource(self) -> None:
        publisher = FakePublisher()
        api = FakeSourcesApi()
        dispatcher = PropagationDispatcher(
            PropagationMode.EVENT, api, publisher_factory=lambda: publisher
        )

        dispatcher.propagate(full_context(), UNAVAILABLE)

        assert api.updates == []
        assert [(service, event) for service, event, _ in publisher.published] == [
            (SERVICE_NAME, EVENT_AVAILABILITY_STATUS)
        ] * 3
        payloads = [json.loads(payload) for _, _, payload in publisher.published]
        assert payloads == [
            {"resource_type": "Source", "resource_id": "42", "status": "unavailable"},
            {
                "resource_type": "Endpoint",
                "resource_id": "7",
                "status": "unavailable",
                "error": "Connection refused",
            },
            {"resource_type": "Application", "resource_id": "9", "status": "unavailable"},
        ]
        assert publisher.closed == 1

    def test_constants(self) -> None:
        assert SERVICE_NAME == "platform.sources.status"
        assert EVENT_AVAILABILITY_STATUS == "availability_status"

    def test_publisher_created_per_batch(self) -> None:
        created: list[FakePublisher] = []

        def factory() -> FakePublisher:
            created.append(FakePublisher())
            return created[-1]

        dispatcher = PropagationDispatcher(
            PropagationMode.EVENT, FakeSourcesApi(), publisher_factory=factory
        )
        dispatcher.propagate(full_context(), AVAILABLE)
        dispatcher.propagate(CheckContext(source_id="43"), AVAILABLE)

        assert len(created) == 2
        assert [p.closed for p in created] == [1, 1]

    def test_publish_failure_is_isolated_and_closed(self, caplog: pytest.LogCaptureFixture) -> None:
        publisher = FakePublisher(fail_on={1})
        metrics = FakeMetrics()
        dispatcher = PropagationDispatcher(
            PropagationMode.EVENT,
            FakeSourcesApi(),
            publisher_factory=lambda: publisher,
            metrics=metrics,
        )

        with caplog.at_level("ERROR"):
            dispatcher.propagate(full_context(), AVAILABLE)

        assert publisher.publish_calls == 3
        assert len(publisher.published) == 2
        assert publisher.closed == 1
        assert metrics.errors == ["messaging"]
        assert "Failed to publish availability status for Source(ID: 42)" in caplog.text

    def test_unexpected_error_is_caught(self) -> None:
        publisher = FakePublisher(fail_on={1, 2, 3}, error=RuntimeError("boom"))
        dispatcher = PropagationDispatcher(
            PropagationMode.EVENT, FakeSourcesApi(), publisher_factory=lambda: publisher
        )

        dispatcher.propagate(full_context(), AVAILABLE)

        assert publisher.published == []
        assert publisher.closed == 1

    def test_factory_failure_is_caught(self) -> None:
        metrics = FakeMetrics()

        def factory() -> FakePublisher:
            raise OSError("no route to broker")

        dispatcher = PropagationDispatcher(
            PropagationMode.EVENT, FakeSourcesApi(), publisher_factory=factory, metrics=metrics
        )

        dispatcher.propagate(full_context(), AVAILABLE)

        assert metrics.errors == ["messaging"]

    def test_close_failure_is_caught(self) -> None:
        class BrokenClose(FakePublisher):
            def close(self) -> None:
                super().close()
                raise OSError("socket already closed")

        publisher = BrokenClose()
        metrics = FakeMetrics()
        dispatcher = PropagationDispatcher(
            PropagationMode.EVENT,
            FakeSourcesApi(),
            publisher_factory=lambda: publisher,
            metrics=metrics,
        )

        dispatcher.propagate(full_context(), AVAILABLE)

        assert publisher.closed == 1
        assert len(publisher.published) == 3
        assert metrics.errors == ["messaging"]
