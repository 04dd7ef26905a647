"""FastAPI application and routes.

This module provides the REST API for City Explorer.

## API Structure

- /auth - Authentication endpoints (Google OAuth)
- /api/save-city, /api/records, /api/stats - Saved records
- /api/cities - City search and aggregation (upstream proxy)
- /health - Health check

## Authentication

Record endpoints require both the ``x-api-key`` header and a session
cookie. Sessions are created during OAuth login.
"""

from city_explorer.api.app import create_app

__all__ = ["create_app"]
