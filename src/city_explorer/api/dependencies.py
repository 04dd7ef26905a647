"""FastAPI dependencies for the collaborators stored on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from city_explorer.auth.google import GoogleOAuth
from city_explorer.providers.aggregator import CityAggregator
from city_explorer.records.store import RecordStore


def get_record_store(request: Request) -> RecordStore:
    return RecordStore(request.app.state.database)


def get_aggregator(request: Request) -> CityAggregator:
    return request.app.state.aggregator


def get_google_oauth(request: Request) -> GoogleOAuth:
    return request.app.state.oauth
