"""Tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from availability.logging import (
    AvailabilityLogger,
    JSONFormatter,
    StructuredFormatter,
    get_logger,
    setup_logging,
)


def make_record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="availability.propagation",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Updating source [%s]",
        args=("42",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_formats_component_and_message(self) -> None:
        output = StructuredFormatter().format(make_record())

        assert "[INFO    ]" in output
        assert "[propagation ]" in output
        assert output.endswith("Updating source [42]")

    def test_includes_context(self) -> None:
        output = StructuredFormatter().format(
            make_record(operation="Source#availability_check", source_id="42")
        )

        assert "[operation=Source#availability_check source_id=42]" in output


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_outputs_json(self) -> None:
        output = JSONFormatter().format(make_record(source_id="42", status="available"))
        data = json.loads(output)

        assert data["level"] == "INFO"
        assert data["component"] == "propagation"
        assert data["message"] == "Updating source [42]"
        assert data["source_id"] == "42"
        assert data["status"] == "available"
        assert "resource_id" not in data

    def test_includes_exception(self) -> None:
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestContextLogger:
    """Tests for AvailabilityLogger.with_context."""

    def test_get_logger_returns_custom_class(self) -> None:
        assert isinstance(get_logger("availability.test_logger"), AvailabilityLogger)

    def test_context_added_to_records(self, caplog: pytest.LogCaptureFixture) -> None:
        log = get_logger("availability.test_context").with_context(source_id="42")

        with caplog.at_level("INFO"):
            log.info("Checking")

        [record] = caplog.records
        assert record.source_id == "42"  # type: ignore[attr-defined]

    def test_call_extra_overrides_context(self, caplog: pytest.LogCaptureFixture) -> None:
        log = get_logger("availability.test_override").with_context(source_id="42", status="x")

        with caplog.at_level("INFO"):
            log.info("Done", extra={"status": "available"})

        [record] = caplog.records
        assert record.source_id == "42"  # type: ignore[attr-defined]
        assert record.status == "available"  # type: ignore[attr-defined]


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root(self) -> Iterator[None]:
        root = logging.getLogger()
        level = root.level
        yield
        for handler in root.handlers[:]:
            if isinstance(handler.formatter, (StructuredFormatter, JSONFormatter)):
                root.removeHandler(handler)
        root.setLevel(level)

    def test_sets_levels(self) -> None:
        setup_logging("DEBUG")

        assert logging.getLogger("availability").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_json_handler(self) -> None:
        setup_logging("INFO", json_format=True)

        assert isinstance(logging.getLogger().handlers[-1].formatter, JSONFormatter)

    def test_replaces_handlers(self) -> None:
        setup_logging("INFO")
        setup_logging("INFO")

        root_handlers = logging.getLogger().handlers
        assert sum(isinstance(h.formatter, StructuredFormatter) for h in root_handlers) == 1

    def test_keeps_handlers(self) -> None:
        setup_logging("INFO")
        count = len(logging.getLogger().handlers)
        setup_logging("INFO", replace_handlers=False)

        assert len(logging.getLogger().handlers) == count + 1
