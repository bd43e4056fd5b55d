"""Shared pytest fixtures for availability checker tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from tests.mocks import FakeMetrics, FakePublisher, FixedClock


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at tests.mocks.NOW."""
    return FixedClock()


@pytest.fixture
def metrics() -> FakeMetrics:
    return FakeMetrics()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every environment variable the configuration reads."""
    for name in (
        "UPDATE_SOURCES_VIA_API",
        "SOURCES_API_URL",
        "EVENT_BUS_URL",
        "AVAILABILITY_HTTP_TIMEOUT",
        "AVAILABILITY_LOG_LEVEL",
        "AVAILABILITY_LOG_JSON",
        "AVAILABILITY_METRICS_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray ./.env from leaking into tests
    monkeypatch.setattr("availability.config.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_logger_levels() -> Iterator[None]:
    """Undo logger level changes made by setup_logging."""
    yield
    logging.getLogger("availability").setLevel(logging.NOTSET)
    logging.getLogger("httpx").setLevel(logging.NOTSET)
