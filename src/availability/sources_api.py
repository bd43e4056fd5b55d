"""Sources API client for reading and updating source records.

The checker talks to the ``SourcesApi`` interface; ``SourcesApiClient`` is
the httpx implementation used in production and tests supply an in-memory
fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from availability.http_client import DEFAULT_TIMEOUT, BaseHttpClient, error_detail
from availability.identity import IdentityHeaders
from availability.logging import get_logger
from availability.models import Application, Authentication, Endpoint

logger = get_logger(__name__)

API_PATH = "/api/sources/v3.1"
INTERNAL_API_PATH = "/internal/v1.0"

T = TypeVar("T")


class SourcesApiError(Exception):
    """Raised when a Sources API request fails."""

    pass


class SourcesApi(ABC):
    """Abstract interface for the Sources API.

    This allows the checker to work with different implementations:
    - Real Sources API client (production)
    - In-memory fake (testing)
    """

    @abstractmethod
    def with_identity(self, identity: IdentityHeaders) -> SourcesApi:
        """Return an API bound to a tenant identity.

        Args:
            identity: Identity headers sent with every request.

        Returns:
            API instance issuing requests as that identity.
        """
        pass

    @abstractmethod
    def get_endpoint(self, source_id: str) -> Endpoint | None:
        """Get the endpoint of a source, or None if it has none.

        Raises:
            SourcesApiError: If the request fails.
        """
        pass

    @abstractmethod
    def get_application(self, source_id: str) -> Application | None:
        """Get the application of a source, or None if it has none.

        Raises:
            SourcesApiError: If the request fails.
        """
        pass

    @abstractmethod
    def get_authentication(self, endpoint_id: str) -> Authentication | None:
        """Get the authentication of an endpoint, or None if it has none.

        Raises:
            SourcesApiError: If the request fails.
        """
        pass

    @abstractmethod
    def update_source(self, source_id: str, patch: dict[str, Any]) -> None:
        """Apply a partial update to a source.

        Raises:
            SourcesApiError: If the request fails.
        """
        pass

    @abstractmethod
    def update_endpoint(self, endpoint_id: str, patch: dict[str, Any]) -> None:
        """Apply a partial update to an endpoint.

        Raises:
            SourcesApiError: If the request fails.
        """
        pass

    @abstractmethod
    def update_application(self, application_id: str, patch: dict[str, Any]) -> None:
        """Apply a partial update to an application.

        Raises:
            SourcesApiError: If the request fails.
        """
        pass


class SourcesApiClient(BaseHttpClient, SourcesApi):
    """Sources API client that uses direct REST calls.

    Uses connection pooling via a reusable httpx.Client. Identity-bound
    copies created by ``with_identity`` share the parent's connection pool;
    only the parent closes it.
    """

    def __init__(
        self,
        base_url: str,
        timeout: httpx.Timeout | None = None,
        identity: IdentityHeaders | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Sources API client.

        Args:
            base_url: Sources API origin (e.g., "http://sources-api:8000").
            timeout: Optional custom timeout configuration.
            identity: Identity headers sent with every request.
            client: Existing httpx.Client to share.
        """
        super().__init__(client)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or DEFAULT_TIMEOUT
        self.identity: IdentityHeaders = dict(identity or {})
        self._headers = {"Accept": "application/json"}

    def with_identity(self, identity: IdentityHeaders) -> SourcesApiClient:
        return SourcesApiClient(
            self.base_url,
            timeout=self.timeout,
            identity=identity,
            client=self._get_client(),
        )

    def _api_url(self, path: str) -> str:
        return f"{self.base_url}{API_PATH}{path}"

    def _internal_url(self, path: str) -> str:
        return f"{self.base_url}{INTERNAL_API_PATH}{path}"

    def _request(
        self,
        method: str,
        url: str,
        description: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and translate failures into SourcesApiError.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            description: Short description for error messages (e.g. "Get endpoints").
            **kwargs: Extra arguments for httpx.Client.request.

        Returns:
            Successful response.

        Raises:
            SourcesApiError: On timeout, transport error or non-2xx status.
        """
        logger.debug("%s %s", method, url)
        try:
            response = self._get_client().request(method, url, headers=self.identity, **kwargs)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise SourcesApiError(f"{description} timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            error_msg = f"{description} failed with status {e.response.status_code}"
            detail = error_detail(e.response)
            if detail:
                error_msg += f": {detail}"
            raise SourcesApiError(error_msg) from e
        except httpx.RequestError as e:
            raise SourcesApiError(f"{description} request failed: {e}") from e

    def _first(self, url: str, description: str, **kwargs: Any) -> dict[str, Any] | None:
        response = self._request("GET", url, description, **kwargs)
        try:
            data: list[dict[str, Any]] = response.json().get("data") or []
        except (ValueError, AttributeError) as e:
            raise SourcesApiError(f"{description} returned an invalid body: {e}") from e
        return data[0] if data else None

    def _parse(
        self, factory: Callable[[dict[str, Any]], T], record: Any, description: str
    ) -> T:
        try:
            return factory(record)
        except (ValueError, KeyError, TypeError) as e:
            raise SourcesApiError(f"{description} returned an invalid record: {e}") from e

    def get_endpoint(self, source_id: str) -> Endpoint | None:
        record = self._first(self._api_url(f"/sources/{source_id}/endpoints"), "Get endpoints")
        if not record:
            return None
        return self._parse(Endpoint.from_api_response, record, "Get endpoints")

    def get_application(self, source_id: str) -> Application | None:
        record = self._first(
            self._api_url(f"/sources/{source_id}/applications"), "Get applications"
        )
        if not record:
            return None
        return self._parse(Application.from_api_response, record, "Get applications")

    def get_authentication(self, endpoint_id: str) -> Authentication | None:
        """Get the authentication of an endpoint with its password exposed.

        The public API never returns passwords, so the record found there is
        re-read from the internal API.
        """
        record = self._first(
            self._api_url(f"/endpoints/{endpoint_id}/authentications"), "Get authentications"
        )
        if not record:
            return None

        response = self._request(
            "GET",
            self._internal_url(f"/authentications/{record['id']}"),
            "Get internal authentication",
            params={"expose_encrypted_attribute[]": "password"},
        )
        try:
            data = response.json()
        except ValueError as e:
            raise SourcesApiError(f"Get internal authentication returned an invalid body: {e}") from e
        return self._parse(Authentication.from_api_response, data, "Get internal authentication")

    def update_source(self, source_id: str, patch: dict[str, Any]) -> None:
        self._request("PATCH", self._api_url(f"/sources/{source_id}"), "Update source", json=patch)

    def update_endpoint(self, endpoint_id: str, patch: dict[str, Any]) -> None:
        self._request(
            "PATCH", self._api_url(f"/endpoints/{endpoint_id}"), "Update endpoint", json=patch
        )

    def update_application(self, application_id: str, patch: dict[str, Any]) -> None:
        self._request(
            "PATCH",
            self._api_url(f"/applications/{application_id}"),
            "Update application",
            json=patch,
        )
