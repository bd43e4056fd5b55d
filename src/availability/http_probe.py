"""Connectivity probe for sources whose endpoint is a plain HTTP(S) service."""

from __future__ import annotations

import httpx

from availability.http_client import DEFAULT_TIMEOUT
from availability.logging import get_logger
from availability.models import AUTH_NOT_NECESSARY, Authentication, Endpoint
from availability.types import AvailabilityStatus

logger = get_logger(__name__)


def endpoint_url(endpoint: Endpoint) -> str:
    """Build the URL of an endpoint from its scheme, host, port and path.

    Raises:
        NotImplementedError: If the endpoint has no host.
    """
    if not endpoint.host:
        raise NotImplementedError(f"Endpoint(ID: {endpoint.id}) has no host to check")

    scheme = endpoint.scheme or "https"
    url = f"{scheme}://{endpoint.host}"
    if endpoint.port:
        url += f":{endpoint.port}"
    path = endpoint.path or ""
    if path and not path.startswith("/"):
        path = f"/{path}"
    return url + path


class HttpEndpointProbe:
    """Checks an endpoint by sending it an authenticated GET request.

    Any 2xx or 3xx answer counts as available. Basic auth is sent unless
    the authentication marks credentials as not necessary.
    """

    def __init__(self, timeout: httpx.Timeout | None = None) -> None:
        self.timeout = timeout or DEFAULT_TIMEOUT

    def __call__(
        self, endpoint: Endpoint, authentication: Authentication
    ) -> tuple[AvailabilityStatus, str | None]:
        url = endpoint_url(endpoint)

        auth: httpx.BasicAuth | None = None
        if authentication.password and authentication.password != AUTH_NOT_NECESSARY:
            auth = httpx.BasicAuth(authentication.username or "", authentication.password)

        logger.debug("Checking Endpoint(ID: %s) at %s", endpoint.id, url)
        try:
            with httpx.Client(
                timeout=self.timeout, verify=endpoint.verify_ssl, follow_redirects=False
            ) as client:
                response = client.get(url, auth=auth)
        except httpx.TimeoutException as e:
            return AvailabilityStatus.UNAVAILABLE, f"Connection to {url} timed out: {e}"
        except httpx.RequestError as e:
            return AvailabilityStatus.UNAVAILABLE, f"Connection to {url} failed: {e}"

        if response.status_code < 400:
            return AvailabilityStatus.AVAILABLE, None
        return AvailabilityStatus.UNAVAILABLE, f"HTTP {response.status_code} from {url}"
