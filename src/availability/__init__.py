"""Sources Availability - availability checks for Sources API records."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sources-availability")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from availability.checker import AvailabilityChecker
from availability.types import AvailabilityStatus, OperationStatus, PropagationMode

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "AvailabilityChecker",
    "AvailabilityStatus",
    "OperationStatus",
    "PropagationMode",
]
