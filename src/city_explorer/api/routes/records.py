"""Saved record routes.

All routes require the ``x-api-key`` header and a signed-in session.

- POST /api/save-city - Save an aggregated record
- GET /api/records - List records (``userId=me`` for only your own)
- GET /api/records/{id} - Get one record
- DELETE /api/records/{id} - Delete one of your records
- GET /api/stats - Record counts and top cities
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from city_explorer.api.dependencies import get_record_store
from city_explorer.auth.dependencies import authenticate_request
from city_explorer.models.base import ApiModel
from city_explorer.models.principal import Principal
from city_explorer.models.record import (
    CitySearchRecord,
    CityStats,
    Pagination,
    SaveCityRequest,
)
from city_explorer.records.store import RecordStore

router = APIRouter()

MINE = "me"


class SaveCityResponse(ApiModel):
    """Response for a saved record."""

    success: bool = True
    message: str = "City data saved successfully"
    data: CitySearchRecord


class RecordResponse(ApiModel):
    success: bool = True
    data: CitySearchRecord


class RecordListResponse(ApiModel):
    """A page of records."""

    success: bool = True
    records: list[CitySearchRecord]
    pagination: Pagination


class MessageResponse(ApiModel):
    success: bool = True
    message: str


class StatsResponse(ApiModel):
    success: bool = True
    data: CityStats


@router.post(
    "/save-city",
    response_model=SaveCityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_city(
    payload: SaveCityRequest,
    principal: Principal = Depends(authenticate_request),
    store: RecordStore = Depends(get_record_store),
) -> SaveCityResponse:
    """Save aggregated city data for the signed-in user.

    Owner fields in the payload are ignored; the session decides ownership.
    """
    record = await store.save(payload, principal)
    return SaveCityResponse(data=record)


@router.get("/records", response_model=RecordListResponse)
async def list_records(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    user_id: str | None = Query(default=None, alias="userId"),
    principal: Principal = Depends(authenticate_request),
    store: RecordStore = Depends(get_record_store),
) -> RecordListResponse:
    """List saved records, newest first."""
    owner_id = principal.id if user_id == MINE else None
    result = await store.list(page=page, limit=limit, owner_id=owner_id)
    return RecordListResponse(records=result.records, pagination=result.pagination)


@router.get("/records/{record_id}", response_model=RecordResponse)
async def get_record(
    record_id: int,
    principal: Principal = Depends(authenticate_request),
    store: RecordStore = Depends(get_record_store),
) -> RecordResponse:
    """Get a single saved record."""
    return RecordResponse(data=await store.get(record_id))


@router.delete("/records/{record_id}", response_model=MessageResponse)
async def delete_record(
    record_id: int,
    principal: Principal = Depends(authenticate_request),
    store: RecordStore = Depends(get_record_store),
) -> MessageResponse:
    """Delete one of the signed-in user's records."""
    await store.delete(record_id, principal)
    return MessageResponse(message="Record deleted successfully")


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    principal: Principal = Depends(authenticate_request),
    store: RecordStore = Depends(get_record_store),
) -> StatsResponse:
    """Get record counts and the most saved cities."""
    return StatsResponse(data=await store.stats(principal))
