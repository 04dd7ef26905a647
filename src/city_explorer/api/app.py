"""FastAPI application factory.

Creates and configures the FastAPI application with all routes and middleware.

## Usage

```python
from city_explorer.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3000)
```

## Configuration

The app is configured via environment variables. See `city_explorer.config`
for available settings. Tests pass their own ``Settings`` and collaborators
to ``create_app`` instead of touching the environment.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from city_explorer.auth.google import GoogleOAuth
from city_explorer.config import Settings, get_settings
from city_explorer.database.connection import Database
from city_explorer.errors import CityExplorerError, RateLimited
from city_explorer.providers.aggregator import CityAggregator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks:
    - Connect the database (startup continues if it is unreachable)
    - Create tables when configured to
    - Close the upstream HTTP client and database on shutdown
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    if await database.connect() and settings.database_create_tables:
        await database.create_tables()

    yield

    # Shutdown
    logger.info("Shutting down")
    await app.state.aggregator.aclose()
    await database.disconnect()


async def handle_app_error(request: Request, exc: CityExplorerError) -> JSONResponse:
    """Render a typed error as the JSON error envelope."""
    if isinstance(exc, RateLimited):
        logger.warning(f"{request.url.path}: {exc.message}")
    elif exc.status_code >= 500:
        logger.error(f"{request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404, 501, ...) as the error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures (422) as the error envelope."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": f"Validation error: {problems}"},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal Server Error"},
    )


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    aggregator: CityAggregator | None = None,
    oauth: GoogleOAuth | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings (loaded from the environment if omitted)
        database: Database context (built from settings if omitted)
        aggregator: Upstream API client (built from settings if omitted)
        oauth: Google OAuth client (built from settings if omitted)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="City search with aggregated weather and country data",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)
    app.state.aggregator = aggregator or CityAggregator.from_settings(settings)
    app.state.oauth = oauth or GoogleOAuth.from_settings(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-api-key"],
    )

    app.add_exception_handler(CityExplorerError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Include routers
    from city_explorer.api.routes import auth, cities, records

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(records.router, prefix="/api", tags=["Records"])
    app.include_router(cities.router, prefix="/api/cities", tags=["Cities"])

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        connected = await app.state.database.ping()
        return {
            "status": "healthy",
            "version": settings.app_version,
            "database": "connected" if connected else "disconnected",
        }

    return app
