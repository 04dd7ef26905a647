"""REST Countries provider.

## API Documentation Summary
Source: https://restcountries.com/

## Endpoint
- GET https://restcountries.com/v3.1/alpha/{code}
- No authentication

## Response Format
The alpha lookup may return a bare object or a list with one object:
```json
[{
  "name": {"common": "United Kingdom", "official": "United Kingdom of Great Britain and Northern Ireland"},
  "capital": ["London"],
  "flags": {"png": "https://flagcdn.com/w320/gb.png", "svg": "https://flagcdn.com/gb.svg", "alt": "..."},
  "currencies": {"GBP": {"name": "British pound", "symbol": "£"}},
  "languages": {"eng": "English"},
  "continents": ["Europe"],
  "timezones": ["UTC-08:00", "UTC-05:00", "UTC+00:00"]
}]
```

## Field Translation
| REST Countries Field | CountryInfo Field | When absent |
|----------------------|-------------------|-------------|
| name.official | official_name | "" |
| capital[0] | capital | "N/A" |
| flags.svg, else flags.png | flag | "" |
| flags.alt | flag_alt | "Flag of {name.common}" |
| first currencies entry | currency | all-empty Currency |
| languages values | languages | [] |
| continents[0] | continent | "N/A" |
| timezones | timezones | [] |
"""

from __future__ import annotations

from typing import Any

import httpx

from city_explorer.errors import UpstreamError
from city_explorer.models.country import CountryInfo, Currency
from city_explorer.providers.base import ApiProvider

NOT_AVAILABLE = "N/A"


def _first(values: Any, default: str) -> str:
    """Return the first element of a list, or a default."""
    if isinstance(values, list) and values:
        return str(values[0])
    return default


def _first_currency(currencies: Any) -> Currency:
    """Take the first entry of the currency mapping.

    Only one currency is kept even for countries that list several.
    """
    if not isinstance(currencies, dict) or not currencies:
        return Currency()

    code, details = next(iter(currencies.items()))
    if not isinstance(details, dict):
        details = {}
    return Currency(
        code=code,
        name=details.get("name"),
        symbol=details.get("symbol"),
    )


class RestCountriesProvider(ApiProvider):
    """REST Countries API provider."""

    name = "restcountries"

    def __init__(
        self,
        base_url: str = "https://restcountries.com/v3.1",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, client=client)

    async def get_country_info(self, country_code: str) -> CountryInfo:
        """Get metadata for a country by ISO alpha-2 code.

        Raises:
            UpstreamError: On a blank code, a non-success status or a
                malformed payload
        """
        if not country_code or not country_code.strip():
            raise UpstreamError("No country code given", provider=self.name)

        data = await self._fetch_json(f"{self.base_url}/alpha/{country_code.strip()}")
        return self._translate_response(data)

    def _translate_response(self, data: Any) -> CountryInfo:
        """Normalize a bare object or one-element list into CountryInfo.

        See module docstring for the field mapping.
        """
        country = data[0] if isinstance(data, list) and data else data
        if not isinstance(country, dict):
            raise self._malformed("expected a country object")

        try:
            names = country.get("name") or {}
            flags = country.get("flags") or {}
            languages = country.get("languages") or {}
            common_name = names.get("common", "")

            return CountryInfo(
                official_name=names.get("official"),
                capital=_first(country.get("capital"), NOT_AVAILABLE),
                flag=flags.get("svg") or flags.get("png") or "",
                flag_alt=flags.get("alt") or f"Flag of {common_name}",
                currency=_first_currency(country.get("currencies")),
                languages=list(languages.values()) if isinstance(languages, dict) else [],
                continent=_first(country.get("continents"), NOT_AVAILABLE),
                timezones=country.get("timezones"),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise self._malformed(str(e)) from e
