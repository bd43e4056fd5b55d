"""Command-line interface argument parsing for the availability checker.

This module provides the CLI argument parser that handles:
- Source id and tenant account of the check
- Propagation mode override (--api / --events)
- Log level override
- Environment file specification
"""

from __future__ import annotations

import argparse
from pathlib import Path


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with the following attributes:
        - source_id: Id of the source to check
        - account: Tenant account number (external tenant)
        - mode: "direct", "event" or None to use configuration
        - log_level: Logging level
        - env_file: Path to .env file
    """
    parser = argparse.ArgumentParser(
        prog="availability-check",
        description="Check a source's availability and record it in the Sources API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--source-id",
        required=True,
        help="Id of the source to check",
    )

    parser.add_argument(
        "--account",
        default=None,
        help="Tenant account number used for the identity header",
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--api",
        dest="mode",
        action="store_const",
        const="direct",
        default=None,
        help="Update records through the Sources API (overrides UPDATE_SOURCES_VIA_API)",
    )
    mode_group.add_argument(
        "--events",
        dest="mode",
        action="store_const",
        const="event",
        help="Publish availability events (overrides UPDATE_SOURCES_VIA_API)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides AVAILABILITY_LOG_LEVEL)",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
