from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import case, delete, func, select

from fscs_backend.db.models import TOP_KIND_ORDER, AntragTop, Top, TopKind
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.repos.sitzungen import SitzungRepository
from fscs_backend.db.session import DatabaseConnection

# Enum columns store member names.
_KIND_RANK = case(
    {kind.name: rank for rank, kind in enumerate(TOP_KIND_ORDER)},
    value=Top.kind,
)


class TopRepository(BaseRepository[Top]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Top)

    async def next_weight(self, sitzung_id: uuid.UUID, kind: TopKind) -> int:
        result = await self.session.execute(
            select(func.max(Top.weight)).where(Top.sitzung_id == sitzung_id, Top.kind == kind)
        )
        current = result.scalar_one_or_none()
        return 1 if current is None else current + 1

    async def append(
        self,
        *,
        sitzung_id: uuid.UUID,
        name: str,
        content: str,
        kind: TopKind,
    ) -> Top | None:
        """Append an agenda item at the end of its kind's section.

        Returns ``None`` when the meeting does not exist. The meeting row stays
        locked until the transaction ends, so concurrent appends to the same
        meeting cannot read the same maximum weight.
        """
        if not await SitzungRepository(self.conn).lock(sitzung_id):
            return None

        weight = await self.next_weight(sitzung_id, kind)
        return await self.add(
            Top(sitzung_id=sitzung_id, name=name, content=content, kind=kind, weight=weight)
        )

    async def get_by_id(self, top_id: uuid.UUID) -> Top | None:
        return await self.get(top_id)

    async def for_sitzung(self, sitzung_id: uuid.UUID) -> list[Top]:
        return await self.list_where(
            Top.sitzung_id == sitzung_id,
            order_by=(_KIND_RANK, Top.weight),
        )

    async def by_antrag(self, antrag_id: uuid.UUID) -> list[Top]:
        result = await self.session.execute(
            select(Top)
            .join(AntragTop, AntragTop.top_id == Top.id)
            .where(AntragTop.antrag_id == antrag_id)
            .order_by(_KIND_RANK, Top.weight)
        )
        return list(result.scalars().all())

    async def update(self, top_id: uuid.UUID, changes: Mapping[str, Any]) -> Top | None:
        # Sibling weights are left alone; gaps and duplicates are allowed.
        top = await self.get(top_id)
        if top is None:
            return None
        return await self.patch(top, changes)

    async def delete_by_id(self, top_id: uuid.UUID) -> Top | None:
        top = await self.get(top_id)
        if top is None:
            return None
        await self.session.execute(delete(AntragTop).where(AntragTop.top_id == top_id))
        await self.delete(top)
        return top
