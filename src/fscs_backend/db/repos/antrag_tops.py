from __future__ import annotations

import uuid

from sqlalchemy import delete

from fscs_backend.db.models import AntragTop
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class AntragTopRepository(BaseRepository[AntragTop]):
    """Association between motions and the agenda items they are discussed under."""

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, AntragTop)

    async def attach(self, *, antrag_id: uuid.UUID, top_id: uuid.UUID) -> AntragTop | None:
        """Link a motion to an agenda item.

        Returns the new row, or ``None`` when the pair was already linked.
        """
        stmt = (
            self.insert_stmt()
            .values(antrag_id=antrag_id, top_id=top_id)
            .on_conflict_do_nothing(index_elements=["antrag_id", "top_id"])
            .returning(AntragTop.antrag_id, AntragTop.top_id)
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        return AntragTop(antrag_id=row.antrag_id, top_id=row.top_id)

    async def detach(self, *, antrag_id: uuid.UUID, top_id: uuid.UUID) -> AntragTop | None:
        """Unlink a motion from an agenda item; ``None`` when they were not linked."""
        stmt = (
            delete(AntragTop)
            .where(AntragTop.antrag_id == antrag_id, AntragTop.top_id == top_id)
            .returning(AntragTop.antrag_id, AntragTop.top_id)
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        return AntragTop(antrag_id=row.antrag_id, top_id=row.top_id)
