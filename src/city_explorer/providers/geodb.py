"""GeoDB Cities provider.

## API Documentation Summary
Source: https://rapidapi.com/wirefreethought/api/geodb-cities

## Endpoints
- Search: GET /v1/geo/cities?namePrefix={prefix}&limit=10&sort=-population
- Details: GET /v1/geo/cities/{id}

## Authentication
- X-RapidAPI-Key: account key
- X-RapidAPI-Host: wft-geo-db.p.rapidapi.com

## Response Format
```json
{
  "data": [
    {
      "id": 3453,
      "type": "CITY",
      "city": "London",
      "name": "London",
      "country": "United Kingdom",
      "countryCode": "GB",
      "region": "England",
      "latitude": 51.507222222,
      "longitude": -0.1275,
      "population": 8908081
    }
  ],
  "metadata": {"currentOffset": 0, "totalCount": 120}
}
```

## Field Translation
| GeoDB Field | City Field |
|-------------|------------|
| id | id |
| city (or name) | name |
| country | country |
| countryCode | country_code |
| region | region |
| population | population |
| latitude / longitude | latitude / longitude |
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from city_explorer.models.city import City
from city_explorer.providers.base import ApiProvider

# Upstream page size and our result cap
MAX_RESULTS = 10


class GeoDBCitiesProvider(ApiProvider):
    """GeoDB Cities API provider.

    Example:
        ```python
        async with GeoDBCitiesProvider(api_key="key") as provider:
            cities = await provider.search_cities("Lon")
        ```
    """

    name = "geodb"

    def __init__(
        self,
        api_key: str | None,
        api_host: str = "wft-geo-db.p.rapidapi.com",
        base_url: str = "https://wft-geo-db.p.rapidapi.com/v1/geo",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, client=client)
        self.api_key = api_key
        self.api_host = api_host

    def _get_default_headers(self) -> dict[str, str]:
        headers = super()._get_default_headers()
        headers["X-RapidAPI-Key"] = self.api_key or ""
        headers["X-RapidAPI-Host"] = self.api_host
        return headers

    async def search_cities(self, query: str) -> list[City]:
        """Search cities by name prefix.

        Args:
            query: Name prefix to search for

        Returns:
            Up to 10 cities, most populous first

        Raises:
            RateLimited: If GeoDB is throttling us
            UpstreamError: On any other failure or a malformed payload
        """
        query = query.strip()
        if not query:
            return []

        data = await self._fetch_json(
            f"{self.base_url}/cities",
            params={
                "namePrefix": query,
                "limit": MAX_RESULTS,
                "sort": "-population",
            },
        )

        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise self._malformed("expected a 'data' list")

        cities = [self._translate_city(item) for item in items]
        # Stable sort keeps upstream order among equal populations
        cities.sort(key=lambda c: c.population, reverse=True)
        return cities[:MAX_RESULTS]

    async def get_city_details(self, city_id: int | str) -> City:
        """Get full details for one city.

        Raises:
            UpstreamError: If the lookup fails or the payload is malformed
        """
        data = await self._fetch_json(f"{self.base_url}/cities/{city_id}")

        item = data.get("data") if isinstance(data, dict) else None
        if not isinstance(item, dict):
            raise self._malformed("expected a 'data' object")

        return self._translate_city(item)

    def _translate_city(self, item: Any) -> City:
        """Translate one GeoDB city entry to a City."""
        if not isinstance(item, dict):
            raise self._malformed("city entry is not an object")

        try:
            return City(
                id=item.get("id"),
                name=item.get("city") or item.get("name") or "",
                country=item.get("country"),
                country_code=item.get("countryCode"),
                region=item.get("region"),
                population=item.get("population"),
                latitude=item.get("latitude"),
                longitude=item.get("longitude"),
            )
        except PydanticValidationError as e:
            raise self._malformed(f"invalid city entry: {e}") from e
