"""OpenWeatherMap current-weather provider.

## API Documentation Summary
Source: https://openweathermap.org/current

## Endpoint
- GET https://api.openweathermap.org/data/2.5/weather?lat={lat}&lon={lon}&units=metric&appid={key}

## Response Format
```json
{
  "weather": [{"id": 803, "main": "Clouds", "description": "broken clouds", "icon": "04d"}],
  "main": {"temp": 14.6, "feels_like": 13.9, "pressure": 1012, "humidity": 72},
  "visibility": 10000,
  "wind": {"speed": 4.1, "deg": 240}
}
```

## Field Translation (metric units)
| OpenWeather Field | WeatherSnapshot Field | Notes |
|-------------------|-----------------------|-------|
| main.temp | temperature | Rounded half-up |
| main.feels_like | feels_like | Rounded half-up |
| main.humidity | humidity | % |
| main.pressure | pressure | hPa |
| weather[0].description | description | |
| weather[0].icon | icon | Expanded to an image URL |
| wind.speed | wind_speed | m/s |
| visibility | visibility | m |
"""

from __future__ import annotations

from typing import Any

import httpx

from city_explorer.models.weather import WeatherSnapshot, round_half_up
from city_explorer.providers.base import ApiProvider

ICON_URL_TEMPLATE = "https://openweathermap.org/img/wn/{icon}@2x.png"


def icon_url(icon: str | None) -> str:
    """Expand an OpenWeather icon code to its image URL."""
    if not icon:
        return ""
    return ICON_URL_TEMPLATE.format(icon=icon)


class OpenWeatherProvider(ApiProvider):
    """OpenWeatherMap Current Weather API provider."""

    name = "openweather"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.openweathermap.org/data/2.5/weather",
        units: str = "metric",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize OpenWeather provider.

        Args:
            api_key: OpenWeather API key
            base_url: Current-weather endpoint
            units: Upstream unit system; the snapshot assumes "metric"
            timeout: Request timeout in seconds
            client: Shared HTTP client
        """
        super().__init__(base_url=base_url, timeout=timeout, client=client)
        self.api_key = api_key
        self.units = units

    async def get_weather(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Get current weather at a coordinate.

        Raises:
            UpstreamError: On a non-success status or a malformed payload
        """
        data = await self._fetch_json(
            self.base_url,
            params={
                "lat": latitude,
                "lon": longitude,
                "units": self.units,
                "appid": self.api_key or "",
            },
        )
        return self._translate_response(data)

    def _translate_response(self, data: Any) -> WeatherSnapshot:
        """Translate an OpenWeather response to a WeatherSnapshot.

        See module docstring for the field mapping.
        """
        if not isinstance(data, dict):
            raise self._malformed("expected an object")

        main = data.get("main")
        conditions = data.get("weather")
        if not isinstance(main, dict) or "temp" not in main:
            raise self._malformed("missing 'main.temp'")
        if not isinstance(conditions, list) or not conditions:
            raise self._malformed("missing 'weather[0]'")

        condition = conditions[0] if isinstance(conditions[0], dict) else {}
        wind = data.get("wind") or {}

        try:
            return WeatherSnapshot(
                temperature=round_half_up(main["temp"]),
                feels_like=round_half_up(main.get("feels_like", main["temp"])),
                humidity=main.get("humidity"),
                pressure=main.get("pressure"),
                description=condition.get("description"),
                icon=icon_url(condition.get("icon")),
                wind_speed=wind.get("speed"),
                visibility=data.get("visibility"),
            )
        except (TypeError, ValueError) as e:
            raise self._malformed(str(e)) from e
