"""Shared httpx connection handling for Sources API and event bus clients."""

from __future__ import annotations

from typing import Any, Self

import httpx

# Default timeout for HTTP requests (connect, read, write, pool)
DEFAULT_TIMEOUT = httpx.Timeout(10.0)


def error_detail(response: httpx.Response) -> str | None:
    """Extract the error detail from a JSON error body, if any.

    Understands the Sources API ``{"errors": [{"detail": ...}]}`` shape and
    the Kafka REST proxy ``{"message": ...}`` shape.

    Args:
        response: Failed HTTP response.

    Returns:
        Error detail text, or None if the body carries none.
    """
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    errors = data.get("errors")
    if isinstance(errors, list):
        details = [str(e.get("detail")) for e in errors if isinstance(e, dict) and e.get("detail")]
        if details:
            return ", ".join(details)
    message = data.get("message")
    return str(message) if message else None


class BaseHttpClient:
    """Base class providing HTTP client connection pooling.

    This class encapsulates the shared connection handling:
    - Lazy initialization of httpx.Client
    - Optional sharing of an existing httpx.Client owned by another instance
    - Resource cleanup via close() method
    - Context manager support (__enter__/__exit__)

    Subclasses must set self.timeout and self._headers before using _get_client().
    """

    timeout: httpx.Timeout
    _headers: dict[str, str]

    def __init__(self, client: httpx.Client | None = None) -> None:
        """Initialize the base HTTP client.

        Args:
            client: Existing httpx.Client to reuse. A shared client is never
                closed by this instance.
        """
        self._client: httpx.Client | None = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        """Get or create the reusable HTTP client.

        Returns:
            A configured httpx.Client instance with connection pooling.

        Raises:
            RuntimeError: If subclass has not set required timeout or _headers attributes.
        """
        if self._client is None:
            if getattr(self, "timeout", None) is None:
                raise RuntimeError(
                    f"{self.__class__.__name__} must set self.timeout before calling _get_client()."
                )
            if getattr(self, "_headers", None) is None:
                raise RuntimeError(
                    f"{self.__class__.__name__} must set self._headers before calling _get_client()."
                )
            self._client = httpx.Client(timeout=self.timeout, headers=self._headers)
            self._owns_client = True
        return self._client

    def close(self) -> None:
        """Close the HTTP client and release resources.

        Should be called when the client is no longer needed.
        """
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None

    def __enter__(self) -> Self:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the HTTP client."""
        self.close()
