"""Pytest fixtures for City Explorer tests.

This module provides test fixtures that ensure:
1. No external API calls are made (GeoDB, OpenWeather, REST Countries, Google)
2. No real database server; SQLite files under tmp_path instead
3. Isolated test environment with controlled configuration
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

# Set test environment BEFORE importing application modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_API_KEY", "test-api-key")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("ENVIRONMENT", "development")

from city_explorer.config import Settings
from city_explorer.database.connection import Database
from city_explorer.models.city import City
from city_explorer.models.principal import Principal
from city_explorer.providers.aggregator import CityAggregator
from city_explorer.records.store import RecordStore

TEST_SECRET = "test-secret-key-at-least-32-characters-long"
TEST_API_KEY = "test-api-key"

GEODB_URL = "https://geodb.test/v1/geo"
OPENWEATHER_URL = "https://openweather.test/data/2.5/weather"
RESTCOUNTRIES_URL = "https://restcountries.test/v3.1"


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from city_explorer.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file and fake upstreams."""
    return Settings(
        secret_key=TEST_SECRET,
        app_api_key=TEST_API_KEY,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'city_explorer.db'}",
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
        rapidapi_key="test-rapidapi-key",
        openweather_api_key="test-openweather-key",
        geodb_base_url=GEODB_URL,
        openweather_base_url=OPENWEATHER_URL,
        restcountries_base_url=RESTCOUNTRIES_URL,
    )


# =============================================================================
# Identity Fixtures
# =============================================================================


@pytest.fixture
def alice() -> Principal:
    return Principal(
        id="google-alice",
        display_name="Alice Example",
        email="alice@example.com",
        photo="https://example.com/alice.jpg",
    )


@pytest.fixture
def bob() -> Principal:
    return Principal(
        id="google-bob",
        display_name="Bob Example",
        email="bob@example.com",
    )


# =============================================================================
# Upstream Payloads
# =============================================================================


@pytest.fixture
def geodb_search_payload() -> dict[str, Any]:
    """GeoDB search response for "Lon", deliberately not population-sorted."""
    return {
        "data": [
            {
                "id": 2,
                "type": "CITY",
                "city": "London",
                "name": "London",
                "country": "Canada",
                "countryCode": "CA",
                "region": "Ontario",
                "latitude": 42.9837,
                "longitude": -81.2497,
                "population": 383822,
            },
            {
                "id": 1,
                "type": "CITY",
                "city": "London",
                "name": "London",
                "country": "United Kingdom",
                "countryCode": "GB",
                "region": "England",
                "latitude": 51.5074,
                "longitude": -0.1278,
                "population": 8908081,
            },
            {
                "id": 3,
                "type": "CITY",
                "city": "Londrina",
                "name": "Londrina",
                "country": "Brazil",
                "countryCode": "BR",
                "region": "Paraná",
                "latitude": -23.3103,
                "longitude": -51.1628,
                "population": 575377,
            },
        ],
        "metadata": {"currentOffset": 0, "totalCount": 3},
    }


@pytest.fixture
def openweather_payload() -> dict[str, Any]:
    """OpenWeather current-weather response for London."""
    return {
        "coord": {"lon": -0.1278, "lat": 51.5074},
        "weather": [
            {"id": 803, "main": "Clouds", "description": "broken clouds", "icon": "04d"}
        ],
        "main": {"temp": 14.5, "feels_like": 13.8, "pressure": 1012, "humidity": 72},
        "visibility": 10000,
        "wind": {"speed": 4.1, "deg": 240},
        "name": "London",
    }


@pytest.fixture
def restcountries_payload() -> list[dict[str, Any]]:
    """REST Countries alpha response for GB (list form)."""
    return [
        {
            "name": {
                "common": "United Kingdom",
                "official": "United Kingdom of Great Britain and Northern Ireland",
            },
            "capital": ["London"],
            "flags": {
                "png": "https://flagcdn.com/w320/gb.png",
                "svg": "https://flagcdn.com/gb.svg",
                "alt": "The flag of the United Kingdom",
            },
            "currencies": {"GBP": {"name": "British pound", "symbol": "£"}},
            "languages": {"eng": "English"},
            "continents": ["Europe"],
            "timezones": ["UTC-08:00", "UTC-05:00", "UTC+00:00"],
        }
    ]


@pytest.fixture
def london() -> City:
    return City(
        id=1,
        name="London",
        country="United Kingdom",
        country_code="GB",
        region="England",
        population=8908081,
        latitude=51.5074,
        longitude=-0.1278,
    )


# =============================================================================
# Upstream Fakes
# =============================================================================


def json_response(payload: Any, status_code: int = 200, **kwargs: Any) -> httpx.Response:
    return httpx.Response(status_code, json=payload, **kwargs)


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient whose requests go to a handler, not the network."""

    def _make(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def upstream_handler(geodb_search_payload, openweather_payload, restcountries_payload):
    """Route fake upstream requests by host."""

    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host == "geodb.test":
            return json_response(geodb_search_payload)
        if host == "openweather.test":
            return json_response(openweather_payload)
        if host == "restcountries.test":
            return json_response(restcountries_payload)
        return httpx.Response(404)

    return handler


@pytest.fixture
def aggregator(settings, make_client, upstream_handler) -> CityAggregator:
    return CityAggregator.from_settings(settings, client=make_client(upstream_handler))


# =============================================================================
# Database Fixtures
# =============================================================================


class StepClock:
    """Deterministic clock: each call returns a time one second later."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
async def database(settings) -> Database:
    db = Database(settings.database_url)
    await db.connect()
    await db.create_tables()
    yield db
    await db.disconnect()


@pytest.fixture
def store(database) -> RecordStore:
    return RecordStore(database, clock=StepClock())
