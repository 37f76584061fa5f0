from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from fscs_backend.db.models import DoorState
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class DoorStateRepository(BaseRepository[DoorState]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, DoorState)

    async def record(self, *, time: datetime, is_open: bool) -> DoorState:
        return await self.add(DoorState(time=time, is_open=is_open))

    async def at(self, time: datetime) -> DoorState | None:
        """Latest state recorded strictly before ``time``."""
        result = await self.session.execute(
            select(DoorState).where(DoorState.time < time).order_by(DoorState.time.desc()).limit(1)
        )
        return result.scalars().first()

    async def between(self, start: datetime, end: datetime) -> list[DoorState]:
        return await self.list_where(
            DoorState.time >= start,
            DoorState.time <= end,
            order_by=DoorState.time,
        )
