"""City search and aggregation routes.

These proxy the upstream APIs so clients need no third-party keys. They
are public, like the upstreams they wrap.

- GET /api/cities/search?q=Lon - Cities by name prefix, most populous first
- GET /api/cities/{id} - City details
- POST /api/cities/aggregate - Weather and country data for a city
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from city_explorer.api.dependencies import get_aggregator
from city_explorer.models.base import ApiModel
from city_explorer.models.city import City
from city_explorer.models.record import CityBundle
from city_explorer.providers.aggregator import CityAggregator

router = APIRouter()


class CityListResponse(ApiModel):
    success: bool = True
    data: list[City]


class CityResponse(ApiModel):
    success: bool = True
    data: City


class CityBundleResponse(ApiModel):
    success: bool = True
    data: CityBundle


@router.get("/search", response_model=CityListResponse)
async def search_cities(
    q: str = Query(default="", max_length=100),
    aggregator: CityAggregator = Depends(get_aggregator),
) -> CityListResponse:
    """Search cities by name prefix."""
    return CityListResponse(data=await aggregator.search(q))


@router.get("/{city_id}", response_model=CityResponse)
async def get_city(
    city_id: str,
    aggregator: CityAggregator = Depends(get_aggregator),
) -> CityResponse:
    """Get details for one city."""
    return CityResponse(data=await aggregator.get_city(city_id))


@router.post("/aggregate", response_model=CityBundleResponse)
async def aggregate_city(
    city: City,
    aggregator: CityAggregator = Depends(get_aggregator),
) -> CityBundleResponse:
    """Fetch weather and country data for a city in one call."""
    return CityBundleResponse(data=await aggregator.aggregate(city))
