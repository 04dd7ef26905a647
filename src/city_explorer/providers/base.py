"""Base upstream API provider.

This module defines the shared HTTP plumbing for the three third-party APIs
City Explorer reads from. Each provider translates its upstream's response
into one of our fixed models immediately, so nothing past the adapter
boundary branches on upstream shape.

## Supported Upstreams

### GeoDB Cities (via RapidAPI)
- Endpoint: https://wft-geo-db.p.rapidapi.com/v1/geo/cities
- Auth: X-RapidAPI-Key and X-RapidAPI-Host headers
- Rate limit: ~1 request/second on the free plan (returns 429)
- Key response path: data[]

### OpenWeatherMap (Current Weather)
- Endpoint: https://api.openweathermap.org/data/2.5/weather
- Auth: appid query parameter
- Key response path: main, weather[0], wind, visibility

### REST Countries (v3.1)
- Endpoint: https://restcountries.com/v3.1/alpha/{code}
- Auth: None
- Response: a bare object or a one-element list

## Failure Policy

- HTTP 429 raises ``RateLimited`` so callers can keep it out of the UI
- Any other status >= 400, transport failure, or unparseable body raises
  ``UpstreamError``
- Requests are not retried
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from city_explorer.errors import RateLimited, UpstreamError

logger = logging.getLogger(__name__)


class ApiProvider:
    """Base class for upstream API providers.

    Attributes:
        name: Provider name used in logs and errors
        base_url: Base URL for the API

    Example:
        ```python
        class MyProvider(ApiProvider):
            name = "my_provider"

            async def get_thing(self, thing_id):
                data = await self._fetch_json(f"{self.base_url}/things/{thing_id}")
                return Thing(**data)
        ```
    """

    name: str = "provider"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the provider.

        Args:
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            client: Shared HTTP client (one is created lazily if omitted)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> ApiProvider:
        """Enter async context manager."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {"Accept": "application/json"}

    async def _fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Fetch a URL and map failures onto our error types.

        Args:
            url: Full URL to fetch
            params: Query parameters
            headers: Additional headers

        Returns:
            HTTP response with a success status

        Raises:
            RateLimited: If the upstream returns 429
            UpstreamError: If the request fails for any other reason
        """
        client = self._get_client()
        request_headers = self._get_default_headers()
        if headers:
            request_headers.update(headers)

        try:
            response = await client.get(url, params=params, headers=request_headers)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request failed: {e}")
            raise UpstreamError(
                f"Failed to fetch from {self.name}: {e}",
                provider=self.name,
            ) from e

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            logger.warning(f"{self.name} rate limit reached")
            raise RateLimited(
                self.name,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if response.status_code >= 400:
            logger.error(f"{self.name} returned {response.status_code}")
            raise UpstreamError(
                f"Failed to fetch from {self.name}: HTTP {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            )

        return response

    async def _fetch_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Fetch a URL and decode its JSON body."""
        response = await self._fetch(url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Failed to parse response from {self.name}: {e}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def _malformed(self, detail: str) -> UpstreamError:
        """Build the error raised when a payload lacks required data."""
        return UpstreamError(
            f"Malformed response from {self.name}: {detail}",
            provider=self.name,
        )
