from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select

from fscs_backend.db.models import AntragTop, Sitzung, SitzungKind, Top
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class SitzungRepository(BaseRepository[Sitzung]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Sitzung)

    async def create(
        self,
        *,
        scheduled_at: datetime,
        location: str,
        kind: SitzungKind,
        antragsfrist: datetime | None = None,
        legislative_period_id: uuid.UUID | None = None,
    ) -> Sitzung:
        return await self.add(
            Sitzung(
                scheduled_at=scheduled_at,
                location=location,
                kind=kind,
                antragsfrist=antragsfrist,
                legislative_period_id=legislative_period_id,
            )
        )

    async def get_by_id(self, sitzung_id: uuid.UUID) -> Sitzung | None:
        return await self.get(sitzung_id)

    async def lock(self, sitzung_id: uuid.UUID) -> bool:
        """Take a row lock on the meeting until the transaction ends.

        Serializes writers that derive values from the meeting's agenda.
        SQLite has no row locks; its single writer gives the same effect.
        """
        result = await self.session.execute(
            select(Sitzung.id).where(Sitzung.id == sitzung_id).with_for_update()
        )
        return result.scalar_one_or_none() is not None

    async def list_all(self) -> list[Sitzung]:
        return await self.list_where(order_by=Sitzung.scheduled_at)

    async def first_after(self, timestamp: datetime) -> Sitzung | None:
        result = await self.session.execute(
            select(Sitzung)
            .where(Sitzung.scheduled_at >= timestamp)
            .order_by(Sitzung.scheduled_at)
            .limit(1)
        )
        return result.scalars().first()

    async def after(self, timestamp: datetime, *, limit: int | None = None) -> list[Sitzung]:
        stmt = select(Sitzung).where(Sitzung.scheduled_at >= timestamp).order_by(Sitzung.scheduled_at)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def between(self, start: datetime, end: datetime) -> list[Sitzung]:
        return await self.list_where(
            Sitzung.scheduled_at >= start,
            Sitzung.scheduled_at <= end,
            order_by=Sitzung.scheduled_at,
        )

    async def update(self, sitzung_id: uuid.UUID, changes: Mapping[str, Any]) -> Sitzung | None:
        sitzung = await self.get(sitzung_id)
        if sitzung is None:
            return None
        return await self.patch(sitzung, changes)

    async def delete_by_id(self, sitzung_id: uuid.UUID) -> Sitzung | None:
        sitzung = await self.get(sitzung_id)
        if sitzung is None:
            return None

        top_ids = select(Top.id).where(Top.sitzung_id == sitzung_id)
        await self.session.execute(delete(AntragTop).where(AntragTop.top_id.in_(top_ids)))
        await self.session.execute(delete(Top).where(Top.sitzung_id == sitzung_id))
        await self.delete(sitzung)
        return sitzung
