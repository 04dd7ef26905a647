"""Record store for saved city searches.

All operations check the database connection first and raise
``StorageUnavailable`` before touching it. Ownership is stamped from the
principal on save and enforced on delete; listing is open to every
authenticated user.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import func, select

from city_explorer.database.connection import Database
from city_explorer.database.models import CitySearch
from city_explorer.errors import Forbidden, NotFound, StorageUnavailable, ValidationError
from city_explorer.models.principal import Principal
from city_explorer.models.record import (
    CitySearchRecord,
    CityStats,
    Pagination,
    RecordPage,
    SaveCityRequest,
    TopCity,
)

logger = logging.getLogger(__name__)

TOP_CITIES_LIMIT = 5


class RecordStore:
    """Persistence for aggregated city records.

    Example:
        ```python
        store = RecordStore(database)
        record = await store.save(SaveCityRequest(city=city), principal)
        page = await store.list(page=1, limit=20, owner_id=principal.id)
        ```
    """

    def __init__(
        self,
        database: Database,
        clock: Callable[[], datetime] | None = None,
    ):
        self.database = database
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def _ensure_available(self) -> None:
        """Raise unless the database answers, re-pinging after an outage."""
        if self.database.is_connected:
            return
        if not await self.database.ping():
            raise StorageUnavailable(
                "Database not connected. Please configure DATABASE_URL."
            )

    async def save(self, draft: SaveCityRequest, principal: Principal) -> CitySearchRecord:
        """Persist a record owned by the principal.

        Owner fields always come from the principal. The timestamp is
        assigned here.

        Raises:
            ValidationError: If the city name or country is blank
            StorageUnavailable: If the database is not connected
        """
        await self._ensure_available()

        if draft.city is None or not draft.city.has_identity:
            raise ValidationError("Bad Request: City name and country are required")

        row = CitySearch.from_parts(
            principal=principal,
            city=draft.city,
            weather=draft.weather,
            country_info=draft.country_info,
            searched_at=self.clock(),
        )

        async with self.database.session() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)

        logger.info(f"User {principal.email} saved {row.city_name} (id={row.id})")
        return row.to_record()

    async def list(
        self,
        page: int = 1,
        limit: int = 50,
        owner_id: str | None = None,
    ) -> RecordPage:
        """List records newest first, optionally only one owner's.

        Ties on ``searched_at`` keep insertion order. A page past the end
        returns no records but accurate pagination.
        """
        await self._ensure_available()

        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")

        query = select(CitySearch)
        count_query = select(func.count()).select_from(CitySearch)
        if owner_id is not None:
            query = query.where(CitySearch.user_id == owner_id)
            count_query = count_query.where(CitySearch.user_id == owner_id)

        query = (
            query.order_by(CitySearch.searched_at.desc(), CitySearch.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        async with self.database.session() as session:
            total = (await session.execute(count_query)).scalar_one()
            rows = (await session.execute(query)).scalars().all()

        return RecordPage(
            records=[row.to_record() for row in rows],
            pagination=Pagination(
                total=total,
                page=page,
                limit=limit,
                pages=math.ceil(total / limit),
            ),
        )

    async def get(self, record_id: int) -> CitySearchRecord:
        """Get one record by id.

        Raises:
            NotFound: If no record has this id
        """
        await self._ensure_available()

        async with self.database.session() as session:
            row = await session.get(CitySearch, record_id)

        if row is None:
            raise NotFound("Record not found")
        return row.to_record()

    async def delete(self, record_id: int, principal: Principal) -> None:
        """Delete a record owned by the principal.

        Raises:
            NotFound: If no record has this id
            Forbidden: If the record belongs to someone else
        """
        await self._ensure_available()

        async with self.database.session() as session:
            row = await session.get(CitySearch, record_id)
            if row is None:
                raise NotFound("Record not found")

            if row.user_id != principal.id:
                logger.warning(
                    f"User {principal.email} tried to delete record {record_id} "
                    f"owned by {row.user_id}"
                )
                raise Forbidden("Forbidden: You can only delete your own records")

            await session.delete(row)
            await session.commit()

        logger.info(f"User {principal.email} deleted record {record_id}")

    async def stats(self, principal: Principal) -> CityStats:
        """Count all records, the principal's records, and the top cities.

        Top cities are ranked by record count; ties go to the city that was
        saved first.
        """
        await self._ensure_available()

        count = func.count(CitySearch.id).label("count")
        first_seen = func.min(CitySearch.id).label("first_seen")
        top_query = (
            select(CitySearch.city_name, count, first_seen)
            .group_by(CitySearch.city_name)
            .order_by(count.desc(), first_seen.asc())
            .limit(TOP_CITIES_LIMIT)
        )

        async with self.database.session() as session:
            total = (
                await session.execute(select(func.count()).select_from(CitySearch))
            ).scalar_one()
            mine = (
                await session.execute(
                    select(func.count())
                    .select_from(CitySearch)
                    .where(CitySearch.user_id == principal.id)
                )
            ).scalar_one()
            top_rows = (await session.execute(top_query)).all()

        return CityStats(
            total_count=total,
            my_count=mine,
            top_cities=[TopCity(name=row.city_name, count=row.count) for row in top_rows],
        )
