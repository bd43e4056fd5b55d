"""Process runner for the availability checker.

Wires configuration, logging, metrics and the HTTP collaborators together
and runs a single check for the source named on the command line.
"""

from __future__ import annotations

import httpx
from prometheus_client import start_http_server

from availability.checker import AvailabilityChecker
from availability.cli import parse_args
from availability.config import Config, load_config
from availability.http_probe import HttpEndpointProbe
from availability.logging import get_logger, setup_logging
from availability.messaging import KafkaRestPublisher
from availability.metrics import PrometheusMetrics
from availability.models import CheckRequest
from availability.sources_api import SourcesApiClient
from availability.types import OperationStatus, PropagationMode

logger = get_logger(__name__)

# Process exit codes
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FAILURE = 2


def exit_code_for(status: OperationStatus) -> int:
    """Map a check outcome to a process exit code."""
    return EXIT_ERROR if status == OperationStatus.ERROR else EXIT_OK


def run_check(
    config: Config,
    request: CheckRequest,
    mode: PropagationMode | None = None,
    metrics: PrometheusMetrics | None = None,
) -> OperationStatus:
    """Run one availability check with production collaborators.

    Args:
        config: Application configuration.
        request: The check to run.
        mode: Propagation mode override; defaults to the configured mode.
        metrics: Error counter; a fresh one is created if not given.

    Returns:
        The check outcome.
    """
    timeout = httpx.Timeout(config.http_timeout)
    with SourcesApiClient(config.sources_api_url, timeout=timeout) as sources_api:
        checker = AvailabilityChecker(
            sources_api=sources_api,
            probe=HttpEndpointProbe(timeout=timeout),
            mode=mode or config.propagation_mode,
            publisher_factory=lambda: KafkaRestPublisher(config.event_bus_url, timeout=timeout),
            metrics=metrics or PrometheusMetrics(),
        )
        return checker.availability_check(request)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the availability-check command.

    Args:
        args: Command line arguments (defaults to sys.argv).

    Returns:
        Exit code (0 for success or skipped, 1 for invalid request,
        2 for an unexpected failure).
    """
    parsed = parse_args(args)
    config = load_config(parsed.env_file)

    setup_logging(parsed.log_level or config.log_level, json_format=config.log_json)

    metrics = PrometheusMetrics()
    if config.metrics_enabled:
        start_http_server(config.metrics_port, registry=metrics.registry)
        logger.info("Serving metrics on port %s", config.metrics_port)

    mode = PropagationMode(parsed.mode) if parsed.mode else None
    request = CheckRequest(source_id=parsed.source_id, account_identifier=parsed.account)

    try:
        status = run_check(config, request, mode=mode, metrics=metrics)
    except Exception:
        logger.exception("Availability check failed for source %s", request.source_id)
        return EXIT_FAILURE

    print(status)
    return exit_code_for(status)
