"""Database connection management.

Provides async database access using SQLAlchemy. Production uses PostgreSQL
with asyncpg; tests use SQLite with aiosqlite.

## Configuration

- DATABASE_URL: Full connection string
- DATABASE_POOL_SIZE: Connection pool size (default: 5)
- DATABASE_MAX_OVERFLOW: Max overflow connections (default: 10)

## Connection Status

``Database.connect()`` never raises on an unreachable server. It logs the
failure and leaves ``is_connected`` false, so the app still starts and the
record store answers 503 until a database is available.

## Usage

```python
database = Database(settings.database_url)
await database.connect()

async with database.session() as session:
    record = await session.get(CitySearch, record_id)

await database.disconnect()
```
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from city_explorer.config import Settings
from city_explorer.database.models import Base
from city_explorer.errors import StorageUnavailable

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and session factory for one database."""

    def __init__(
        self,
        url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        self.url = url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._connected = False

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        """Build a Database from application settings."""
        return cls(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            echo=settings.database_echo,
        )

    @property
    def is_connected(self) -> bool:
        """Whether the last connect/ping reached the database."""
        return self._connected and self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._engine

    @staticmethod
    def _is_outage(error: DBAPIError) -> bool:
        """Whether a driver error means the database itself went away."""
        return error.connection_invalidated or isinstance(
            error, (OperationalError, InterfaceError)
        )

    def _engine_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "pool_pre_ping": True,  # Verify connections before use
            "echo": self.echo,  # Log SQL in debug mode
        }
        # SQLite uses its own pool classes that take no sizing arguments
        if not self.url.startswith("sqlite"):
            kwargs["pool_size"] = self.pool_size
            kwargs["max_overflow"] = self.max_overflow
        return kwargs

    async def connect(self) -> bool:
        """Create the engine and verify the database is reachable.

        Returns:
            True if the database answered
        """
        logger.info("Initializing database connection")

        self._engine = create_async_engine(self.url, **self._engine_kwargs())
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        if await self.ping():
            logger.info("Database connection initialized")
        else:
            logger.error("Database not connected; record operations will return 503")
        return self._connected

    async def ping(self) -> bool:
        """Run ``SELECT 1`` and update the connection status."""
        if self._engine is None:
            self._connected = False
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database ping failed: {e}")
            self._connected = False
        else:
            self._connected = True
        return self._connected

    async def disconnect(self) -> None:
        """Dispose of the engine. Safe to call when not connected."""
        if self._engine is not None:
            logger.info("Closing database connection")
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        self._connected = False

    async def create_tables(self) -> None:
        """Create all database tables.

        For development/testing; production schemas should be migrated.
        """
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all database tables.

        For development/testing only. Use with caution!
        """
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        logger.warning("Database tables dropped")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session.

        Use as an async context manager:
        ```python
        async with database.session() as session:
            # Use session
            await session.commit()
        ```

        The session is rolled back on error and always closed on exit. A
        lost connection marks the database disconnected and raises
        ``StorageUnavailable``; the next ``ping()`` can bring it back.
        Transactions are not automatically committed - call commit() explicitly.
        """
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        session = self._session_factory()
        try:
            yield session
        except DBAPIError as e:
            if not self._is_outage(e):
                await session.rollback()
                raise
            logger.error(f"Database connection lost: {e}")
            self._connected = False
            raise StorageUnavailable() from e
        except OSError as e:
            logger.error(f"Database unreachable: {e}")
            self._connected = False
            raise StorageUnavailable() from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
