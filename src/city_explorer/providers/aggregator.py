"""City data aggregation.

Combines the three upstream providers into one ``CityBundle``:

1. Search cities by name prefix (GeoDB)
2. For the chosen city, fetch weather (OpenWeather) and country metadata
   (REST Countries) concurrently
3. Merge into ``{city, weather, country_info}``

Both concurrent lookups must succeed. If either fails the other is
cancelled and the aggregate fails with that provider's error; no partial
bundle is ever returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from city_explorer.config import Settings
from city_explorer.errors import NotFound
from city_explorer.models.city import City
from city_explorer.models.record import CityBundle
from city_explorer.providers.geodb import GeoDBCitiesProvider
from city_explorer.providers.openweather import OpenWeatherProvider
from city_explorer.providers.restcountries import RestCountriesProvider

logger = logging.getLogger(__name__)


class CityAggregator:
    """Fan-out client over the city, weather and country providers.

    Example:
        ```python
        async with CityAggregator.from_settings(get_settings()) as aggregator:
            bundle = await aggregator.explore("Lon")
        ```
    """

    def __init__(
        self,
        cities: GeoDBCitiesProvider,
        weather: OpenWeatherProvider,
        countries: RestCountriesProvider,
        client: httpx.AsyncClient | None = None,
    ):
        self.cities = cities
        self.weather = weather
        self.countries = countries
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> CityAggregator:
        """Build an aggregator whose providers share one HTTP client."""
        client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        return cls(
            cities=GeoDBCitiesProvider(
                api_key=settings.rapidapi_key,
                api_host=settings.rapidapi_host,
                base_url=settings.geodb_base_url,
                timeout=settings.http_timeout_seconds,
                client=client,
            ),
            weather=OpenWeatherProvider(
                api_key=settings.openweather_api_key,
                base_url=settings.openweather_base_url,
                timeout=settings.http_timeout_seconds,
                client=client,
            ),
            countries=RestCountriesProvider(
                base_url=settings.restcountries_base_url,
                timeout=settings.http_timeout_seconds,
                client=client,
            ),
            client=client,
        )

    async def __aenter__(self) -> CityAggregator:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the shared HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search(self, query: str) -> list[City]:
        """Search cities, most populous first."""
        return await self.cities.search_cities(query)

    async def get_city(self, city_id: int | str) -> City:
        """Look up one city by its provider id."""
        return await self.cities.get_city_details(city_id)

    async def aggregate(self, city: City) -> CityBundle:
        """Fetch weather and country data for a city concurrently.

        Raises:
            UpstreamError: If either lookup fails (RateLimited included)
        """
        logger.debug(f"Aggregating data for {city}")

        try:
            async with asyncio.TaskGroup() as group:
                weather = group.create_task(
                    self.weather.get_weather(city.latitude, city.longitude)
                )
                country_info = group.create_task(
                    self.countries.get_country_info(city.country_code)
                )
        except ExceptionGroup as eg:
            # The first failure cancels the other lookup
            raise eg.exceptions[0]

        return CityBundle(
            city=city,
            weather=weather.result(),
            country_info=country_info.result(),
        )

    async def explore(self, query: str) -> CityBundle:
        """Search and aggregate the top-ranked match.

        Raises:
            NotFound: If no city matches the query
        """
        cities = await self.search(query)
        if not cities:
            raise NotFound(f"No city matches '{query}'")
        return await self.aggregate(cities[0])
