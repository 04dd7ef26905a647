"""Domain models for City Explorer."""

from city_explorer.models.city import City
from city_explorer.models.country import CountryInfo, Currency
from city_explorer.models.principal import Principal
from city_explorer.models.record import (
    CityBundle,
    CitySearchRecord,
    CityStats,
    Pagination,
    RecordPage,
    SaveCityRequest,
    TopCity,
)
from city_explorer.models.weather import WeatherSnapshot

__all__ = [
    # City
    "City",
    # Weather
    "WeatherSnapshot",
    # Country
    "CountryInfo",
    "Currency",
    # Identity
    "Principal",
    # Records
    "CityBundle",
    "SaveCityRequest",
    "CitySearchRecord",
    "Pagination",
    "RecordPage",
    "TopCity",
    "CityStats",
]
