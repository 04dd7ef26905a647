"""Database models for City Explorer.

## Schema Overview

```
city_searches
  id, user_id, user_name, user_email       owner (denormalized from session)
  city_*                                   city columns
  weather_*                                weather columns
  country_*, languages, timezones          country columns (lists as JSON)
  searched_at                              server timestamp
```

Records are append-only. Indexes support listing a user's records newest
first and looking up by city name.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from city_explorer.models.city import City
from city_explorer.models.country import CountryInfo, Currency
from city_explorer.models.principal import Principal
from city_explorer.models.record import CitySearchRecord
from city_explorer.models.weather import WeatherSnapshot

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonList = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all database models."""

    type_annotation_map = {
        list[str]: JsonList,
    }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CitySearch(Base):
    """A saved city search: city, weather and country data plus owner."""

    __tablename__ = "city_searches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Owner
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)

    # City (GeoDB)
    city_name: Mapped[str] = mapped_column(String(255), nullable=False)
    city_country: Mapped[str] = mapped_column(String(255), nullable=False)
    city_country_code: Mapped[str] = mapped_column(String(8), default="")
    city_region: Mapped[str] = mapped_column(String(255), default="")
    city_population: Mapped[int] = mapped_column(Integer, default=0)
    city_latitude: Mapped[float] = mapped_column(Float, default=0.0)
    city_longitude: Mapped[float] = mapped_column(Float, default=0.0)

    # Weather (OpenWeather)
    weather_temperature: Mapped[int] = mapped_column(Integer, default=0)
    weather_feels_like: Mapped[int] = mapped_column(Integer, default=0)
    weather_humidity: Mapped[float] = mapped_column(Float, default=0.0)
    weather_pressure: Mapped[float] = mapped_column(Float, default=0.0)
    weather_description: Mapped[str] = mapped_column(String(255), default="")
    weather_icon: Mapped[str] = mapped_column(String(512), default="")
    weather_wind_speed: Mapped[float] = mapped_column(Float, default=0.0)
    weather_visibility: Mapped[float] = mapped_column(Float, default=0.0)

    # Country (REST Countries)
    country_official_name: Mapped[str] = mapped_column(String(255), default="")
    country_capital: Mapped[str] = mapped_column(String(255), default="")
    country_flag: Mapped[str] = mapped_column(String(512), default="")
    country_flag_alt: Mapped[str] = mapped_column(Text, default="")
    currency_code: Mapped[str] = mapped_column(String(16), default="")
    currency_name: Mapped[str] = mapped_column(String(128), default="")
    currency_symbol: Mapped[str] = mapped_column(String(16), default="")
    languages: Mapped[list[str]] = mapped_column(default=list)
    continent: Mapped[str] = mapped_column(String(64), default="")
    timezones: Mapped[list[str]] = mapped_column(default=list)

    # Metadata
    searched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @classmethod
    def from_parts(
        cls,
        principal: Principal,
        city: City,
        weather: WeatherSnapshot,
        country_info: CountryInfo,
        searched_at: datetime,
    ) -> CitySearch:
        """Build a row from domain models, stamping the owner."""
        return cls(
            user_id=principal.id,
            user_name=principal.display_name,
            user_email=principal.email,
            city_name=city.name.strip(),
            city_country=city.country.strip(),
            city_country_code=city.country_code,
            city_region=city.region,
            city_population=city.population,
            city_latitude=city.latitude,
            city_longitude=city.longitude,
            weather_temperature=weather.temperature,
            weather_feels_like=weather.feels_like,
            weather_humidity=weather.humidity,
            weather_pressure=weather.pressure,
            weather_description=weather.description,
            weather_icon=weather.icon,
            weather_wind_speed=weather.wind_speed,
            weather_visibility=weather.visibility,
            country_official_name=country_info.official_name,
            country_capital=country_info.capital,
            country_flag=country_info.flag,
            country_flag_alt=country_info.flag_alt,
            currency_code=country_info.currency.code,
            currency_name=country_info.currency.name,
            currency_symbol=country_info.currency.symbol,
            languages=list(country_info.languages),
            continent=country_info.continent,
            timezones=list(country_info.timezones),
            searched_at=searched_at,
        )

    def to_record(self) -> CitySearchRecord:
        """Convert the row back to the wire model."""
        searched_at = self.searched_at
        # SQLite drops tzinfo on the way back
        if searched_at.tzinfo is None:
            searched_at = searched_at.replace(tzinfo=timezone.utc)

        return CitySearchRecord(
            id=self.id,
            user_id=self.user_id,
            user_name=self.user_name,
            user_email=self.user_email,
            city=City(
                name=self.city_name,
                country=self.city_country,
                country_code=self.city_country_code,
                region=self.city_region,
                population=self.city_population,
                latitude=self.city_latitude,
                longitude=self.city_longitude,
            ),
            weather=WeatherSnapshot(
                temperature=self.weather_temperature,
                feels_like=self.weather_feels_like,
                humidity=self.weather_humidity,
                pressure=self.weather_pressure,
                description=self.weather_description,
                icon=self.weather_icon,
                wind_speed=self.weather_wind_speed,
                visibility=self.weather_visibility,
            ),
            country_info=CountryInfo(
                official_name=self.country_official_name,
                capital=self.country_capital,
                flag=self.country_flag,
                flag_alt=self.country_flag_alt,
                currency=Currency(
                    code=self.currency_code,
                    name=self.currency_name,
                    symbol=self.currency_symbol,
                ),
                languages=list(self.languages or []),
                continent=self.continent,
                timezones=list(self.timezones or []),
            ),
            searched_at=searched_at,
        )

    def __repr__(self) -> str:
        return f"<CitySearch {self.city_name} user_id={self.user_id}>"


Index(
    "ix_city_searches_user_searched",
    CitySearch.user_id,
    CitySearch.searched_at.desc(),
)
Index("ix_city_searches_city_name", CitySearch.city_name)
