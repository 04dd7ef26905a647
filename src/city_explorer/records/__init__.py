"""Saved city records."""

from city_explorer.records.store import RecordStore

__all__ = ["RecordStore"]
