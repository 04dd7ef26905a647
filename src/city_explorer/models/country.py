"""Country metadata models."""

from __future__ import annotations

from pydantic import Field

from city_explorer.models.base import ApiModel


class Currency(ApiModel):
    """A single currency (ISO code, display name, symbol)."""

    code: str = ""
    name: str = ""
    symbol: str = ""


class CountryInfo(ApiModel):
    """Country metadata normalized from the country upstream.

    Only the first currency the upstream lists is kept.
    """

    official_name: str = ""
    capital: str = ""
    flag: str = Field(default="", description="Flag image URL")
    flag_alt: str = Field(default="", description="Accessible alt text for the flag")
    currency: Currency = Field(default_factory=Currency)
    languages: list[str] = Field(default_factory=list)
    continent: str = ""
    timezones: list[str] = Field(
        default_factory=list,
        description="Timezone identifiers; the first one is canonical",
    )

    @property
    def primary_timezone(self) -> str | None:
        """Get the canonical (first) timezone, if any."""
        return self.timezones[0] if self.timezones else None
