from __future__ import annotations

import uuid

from sqlalchemy import select

from fscs_backend.db.models import LegislativePeriod, Sitzung
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class LegislativePeriodRepository(BaseRepository[LegislativePeriod]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, LegislativePeriod)

    async def create(self, name: str) -> LegislativePeriod:
        return await self.add(LegislativePeriod(name=name))

    async def list_all(self) -> list[LegislativePeriod]:
        return await self.list_where(order_by=LegislativePeriod.name)

    async def rename(self, period_id: uuid.UUID, name: str) -> LegislativePeriod | None:
        period = await self.get(period_id)
        if period is None:
            return None
        return await self.patch(period, {"name": name})

    async def delete_by_id(self, period_id: uuid.UUID) -> LegislativePeriod | None:
        period = await self.get(period_id)
        if period is None:
            return None
        await self.delete(period)
        return period

    async def sitzungen(self, period_id: uuid.UUID) -> list[Sitzung]:
        result = await self.session.execute(
            select(Sitzung)
            .where(Sitzung.legislative_period_id == period_id)
            .order_by(Sitzung.scheduled_at)
        )
        return list(result.scalars().all())
