"""Weather models.

The canonical snapshot uses metric units:
- Temperature: Celsius, rounded to whole degrees for display
- Humidity: percentage (0-100)
- Pressure: hectopascals (hPa)
- Wind speed: meters per second (m/s)
- Visibility: meters (m)
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import Field, field_validator

from city_explorer.models.base import ApiModel


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


class WeatherSnapshot(ApiModel):
    """Point-in-time weather for a city.

    Every field defaults to zero/empty so a saved record never needs the
    weather upstream to have answered.
    """

    temperature: int = Field(default=0, description="Temperature in Celsius")
    feels_like: int = Field(default=0, description="Apparent temperature in Celsius")
    humidity: float = Field(default=0, description="Relative humidity (%)")
    pressure: float = Field(default=0, description="Pressure (hPa)")
    description: str = ""
    icon: str = Field(default="", description="Icon image URL")
    wind_speed: float = Field(default=0, description="Wind speed (m/s)")
    visibility: float = Field(default=0, description="Visibility (m)")

    @field_validator("temperature", "feels_like", mode="before")
    @classmethod
    def round_temperature(cls, v: Any) -> Any:
        """Accept fractional degrees and round them for display."""
        if isinstance(v, float):
            return round_half_up(v)
        return v
