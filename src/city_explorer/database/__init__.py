"""Database module for City Explorer.

This module provides:
- SQLAlchemy async database connection (``Database``)
- The ``CitySearch`` model for saved aggregated records
"""

from city_explorer.database.connection import Database
from city_explorer.database.models import Base, CitySearch

__all__ = [
    # Connection
    "Database",
    # Models
    "Base",
    "CitySearch",
]
