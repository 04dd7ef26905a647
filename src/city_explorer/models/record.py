"""Aggregated record models.

## Shapes

- ``CityBundle``: what the aggregator returns (city + weather + country)
- ``SaveCityRequest``: what a client posts to save; owner fields are ignored
- ``CitySearchRecord``: a persisted record, stamped with owner and time
- ``RecordPage`` / ``Pagination``: a page of records
- ``CityStats``: aggregate counts
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from city_explorer.models.base import ApiModel
from city_explorer.models.city import City
from city_explorer.models.country import CountryInfo
from city_explorer.models.weather import WeatherSnapshot


class CityBundle(ApiModel):
    """City with its weather and country data, all present."""

    city: City
    weather: WeatherSnapshot
    country_info: CountryInfo


class SaveCityRequest(ApiModel):
    """Client payload for saving a record.

    Only ``city`` is required to be meaningful, and the store checks that.
    Weather and country data fall back to empty defaults.
    """

    city: City | None = None
    weather: WeatherSnapshot = Field(default_factory=WeatherSnapshot)
    country_info: CountryInfo = Field(default_factory=CountryInfo)


class CitySearchRecord(ApiModel):
    """A persisted aggregated record."""

    id: int
    user_id: str
    user_name: str
    user_email: str
    city: City
    weather: WeatherSnapshot
    country_info: CountryInfo
    searched_at: datetime


class Pagination(ApiModel):
    """Pagination metadata. ``pages`` is ``ceil(total / limit)``."""

    total: int
    page: int
    limit: int
    pages: int


class RecordPage(ApiModel):
    """One page of records plus its pagination metadata."""

    records: list[CitySearchRecord]
    pagination: Pagination


class TopCity(ApiModel):
    """A city name and how many records mention it."""

    name: str
    count: int


class CityStats(ApiModel):
    """Aggregate statistics over all records."""

    total_count: int
    my_count: int
    top_cities: list[TopCity]
