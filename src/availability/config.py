"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from availability.types import PropagationMode

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Port validation bounds (0 disables the metrics endpoint)
MIN_PORT = 0
MAX_PORT = 65535

DEFAULT_SOURCES_API_URL = "http://localhost:3000"
DEFAULT_EVENT_BUS_URL = "http://localhost:8082"
DEFAULT_HTTP_TIMEOUT = 10.0


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment.

    This dataclass is frozen (immutable) so the propagation mode is fixed
    for the life of the process.
    """

    # Raw UPDATE_SOURCES_VIA_API switch; non-blank selects direct API updates
    update_sources_via_api: str = ""

    # Collaborator endpoints
    sources_api_url: str = DEFAULT_SOURCES_API_URL
    event_bus_url: str = DEFAULT_EVENT_BUS_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT  # seconds

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Prometheus endpoint for error counters
    metrics_port: int = 0

    @property
    def propagation_mode(self) -> PropagationMode:
        """Propagation mode selected by UPDATE_SOURCES_VIA_API."""
        return PropagationMode.from_update_via_api(self.update_sources_via_api)

    @property
    def metrics_enabled(self) -> bool:
        """Check if the metrics endpoint should be started."""
        return self.metrics_port > 0


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Args:
        value: The string value to parse.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def _parse_positive_float(value: str, name: str, default: float) -> float:
    """Parse a string as a positive float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive float, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = float(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %f is not positive, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _parse_port(value: str, name: str, default: int) -> int:
    """Parse a string as a TCP port number with range validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed port number (MIN_PORT-MAX_PORT), or the default if invalid.

    Logs a warning if the value is invalid or out of range.
    """
    try:
        parsed = int(value)
        if parsed < MIN_PORT or parsed > MAX_PORT:
            logging.warning(
                "Invalid %s: %d is not a valid port (must be %d-%d), using default %d",
                name,
                parsed,
                MIN_PORT,
                MAX_PORT,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.

    Logs a warning if the value is invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid AVAILABILITY_LOG_LEVEL: '%s' is not valid, using default '%s'. Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _validate_url(value: str, name: str, default: str) -> str:
    """Validate an http(s) origin and strip any trailing slash.

    Args:
        value: The URL string to validate.
        name: The name of the setting (for error messages).
        default: The default value to use if invalid.

    Returns:
        The URL without trailing slash, or the default if invalid.
    """
    stripped = value.strip()
    if not stripped.startswith(("http://", "https://")):
        logging.warning(
            "Invalid %s: '%s' is not an http(s) URL, using default '%s'",
            name,
            value,
            default,
        )
        return default
    return stripped.rstrip("/")


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Values are validated and defaults are used for invalid inputs.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    sources_api_url = _validate_url(
        os.getenv("SOURCES_API_URL", DEFAULT_SOURCES_API_URL),
        "SOURCES_API_URL",
        DEFAULT_SOURCES_API_URL,
    )
    event_bus_url = _validate_url(
        os.getenv("EVENT_BUS_URL", DEFAULT_EVENT_BUS_URL),
        "EVENT_BUS_URL",
        DEFAULT_EVENT_BUS_URL,
    )
    http_timeout = _parse_positive_float(
        os.getenv("AVAILABILITY_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT)),
        "AVAILABILITY_HTTP_TIMEOUT",
        DEFAULT_HTTP_TIMEOUT,
    )

    log_level = _validate_log_level(os.getenv("AVAILABILITY_LOG_LEVEL", "INFO"))
    log_json = _parse_bool(os.getenv("AVAILABILITY_LOG_JSON", ""))

    metrics_port = _parse_port(
        os.getenv("AVAILABILITY_METRICS_PORT", "0"),
        "AVAILABILITY_METRICS_PORT",
        0,
    )

    return Config(
        update_sources_via_api=os.getenv("UPDATE_SOURCES_VIA_API", ""),
        sources_api_url=sources_api_url,
        event_bus_url=event_bus_url,
        http_timeout=http_timeout,
        log_level=log_level,
        log_json=log_json,
        metrics_port=metrics_port,
    )
