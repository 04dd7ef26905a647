"""Upstream API providers."""

from city_explorer.providers.aggregator import CityAggregator
from city_explorer.providers.base import ApiProvider
from city_explorer.providers.geodb import GeoDBCitiesProvider
from city_explorer.providers.openweather import OpenWeatherProvider
from city_explorer.providers.restcountries import RestCountriesProvider

__all__ = [
    "ApiProvider",
    "CityAggregator",
    "GeoDBCitiesProvider",
    "OpenWeatherProvider",
    "RestCountriesProvider",
]
