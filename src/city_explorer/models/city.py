"""City models."""

from __future__ import annotations

from pydantic import Field

from city_explorer.models.base import ApiModel


class City(ApiModel):
    """A city as returned by the city-search provider.

    Latitude:
        - Negative (-) = south of equator
        - Positive (+) = north of equator

    Longitude:
        - Negative (-) = west of prime meridian
        - Positive (+) = east of prime meridian
    """

    id: int | None = Field(
        default=None, description="City-search provider identifier"
    )
    name: str = Field(default="", description="City name")
    country: str = Field(default="", description="Country name")
    country_code: str = Field(default="", description="ISO 3166-1 alpha-2 code")
    region: str = Field(default="", description="Region or state")
    population: int = Field(default=0, ge=0)
    latitude: float = Field(
        default=0.0, ge=-90, le=90, description="Latitude in decimal degrees"
    )
    longitude: float = Field(
        default=0.0, ge=-180, le=180, description="Longitude in decimal degrees"
    )

    @property
    def has_identity(self) -> bool:
        """Check that name and country are both present."""
        return bool(self.name.strip() and self.country.strip())

    def display_name(self) -> str:
        """Get a display name for this city."""
        parts = [p for p in (self.name, self.region, self.country) if p]
        return ", ".join(parts) if parts else "Unknown city"

    def __str__(self) -> str:
        return self.display_name()
