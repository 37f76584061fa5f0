from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sqlalchemy import delete, select

from fscs_backend.db.models import Antrag, AntragAttachment, AntragAuthor, AntragTop
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


@dataclass(frozen=True)
class AntragDetails:
    antrag: Antrag
    author_ids: tuple[uuid.UUID, ...]
    attachment_ids: tuple[uuid.UUID, ...]


class AntragRepository(BaseRepository[Antrag]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Antrag)

    async def _author_ids(self, antrag_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, list[uuid.UUID]]:
        by_antrag: dict[uuid.UUID, list[uuid.UUID]] = {antrag_id: [] for antrag_id in antrag_ids}
        if not antrag_ids:
            return by_antrag
        result = await self.session.execute(
            select(AntragAuthor.antrag_id, AntragAuthor.person_id).where(
                AntragAuthor.antrag_id.in_(antrag_ids)
            )
        )
        for antrag_id, person_id in result.all():
            by_antrag[antrag_id].append(person_id)
        return by_antrag

    async def _attachment_ids(
        self, antrag_ids: Sequence[uuid.UUID]
    ) -> dict[uuid.UUID, list[uuid.UUID]]:
        by_antrag: dict[uuid.UUID, list[uuid.UUID]] = {antrag_id: [] for antrag_id in antrag_ids}
        if not antrag_ids:
            return by_antrag
        result = await self.session.execute(
            select(AntragAttachment.antrag_id, AntragAttachment.attachment_id).where(
                AntragAttachment.antrag_id.in_(antrag_ids)
            )
        )
        for antrag_id, attachment_id in result.all():
            by_antrag[antrag_id].append(attachment_id)
        return by_antrag

    async def _details(self, antraege: Sequence[Antrag]) -> list[AntragDetails]:
        ids = [antrag.id for antrag in antraege]
        authors = await self._author_ids(ids)
        attachments = await self._attachment_ids(ids)
        return [
            AntragDetails(
                antrag=antrag,
                author_ids=tuple(sorted(authors[antrag.id])),
                attachment_ids=tuple(sorted(attachments[antrag.id])),
            )
            for antrag in antraege
        ]

    async def _insert_authors(self, antrag_id: uuid.UUID, author_ids: Iterable[uuid.UUID]) -> None:
        # Duplicate ids collapse into one authorship row.
        for person_id in dict.fromkeys(author_ids):
            self.session.add(AntragAuthor(antrag_id=antrag_id, person_id=person_id))
        await self.session.flush()

    async def create(
        self,
        *,
        author_ids: Sequence[uuid.UUID],
        title: str,
        justification: str,
        body_text: str,
    ) -> AntragDetails:
        antrag = await self.add(Antrag(title=title, justification=justification, body_text=body_text))
        await self._insert_authors(antrag.id, author_ids)
        return (await self._details([antrag]))[0]

    async def get_details(self, antrag_id: uuid.UUID) -> AntragDetails | None:
        antrag = await self.get(antrag_id)
        if antrag is None:
            return None
        return (await self._details([antrag]))[0]

    async def list_all(self) -> list[AntragDetails]:
        antraege = await self.list_where(order_by=Antrag.created_at)
        return await self._details(antraege)

    async def orphans(self) -> list[AntragDetails]:
        """Motions that are not on any agenda."""
        result = await self.session.execute(
            select(Antrag)
            .outerjoin(AntragTop, AntragTop.antrag_id == Antrag.id)
            .where(AntragTop.antrag_id.is_(None))
            .order_by(Antrag.created_at)
        )
        return await self._details(list(result.scalars().all()))

    async def by_top(self, top_id: uuid.UUID) -> list[AntragDetails]:
        result = await self.session.execute(
            select(Antrag)
            .join(AntragTop, AntragTop.antrag_id == Antrag.id)
            .where(AntragTop.top_id == top_id)
            .order_by(Antrag.created_at)
        )
        return await self._details(list(result.scalars().all()))

    async def is_author(self, antrag_id: uuid.UUID, person_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            select(AntragAuthor.person_id).where(
                AntragAuthor.antrag_id == antrag_id,
                AntragAuthor.person_id == person_id,
            )
        )
        return result.first() is not None

    async def update(
        self,
        antrag_id: uuid.UUID,
        *,
        title: str | None = None,
        justification: str | None = None,
        body_text: str | None = None,
        author_ids: Sequence[uuid.UUID] | None = None,
    ) -> AntragDetails | None:
        """Partially update a motion.

        A given ``author_ids`` replaces the whole authorship set; ``None``
        leaves it untouched.
        """
        antrag = await self.get(antrag_id)
        if antrag is None:
            return None

        await self.patch(
            antrag,
            {"title": title, "justification": justification, "body_text": body_text},
        )
        if author_ids is not None:
            await self.session.execute(delete(AntragAuthor).where(AntragAuthor.antrag_id == antrag_id))
            await self._insert_authors(antrag_id, author_ids)

        return (await self._details([antrag]))[0]

    async def delete_by_id(self, antrag_id: uuid.UUID) -> Antrag | None:
        antrag = await self.get(antrag_id)
        if antrag is None:
            return None
        await self.session.execute(delete(AntragTop).where(AntragTop.antrag_id == antrag_id))
        await self.session.execute(delete(AntragAuthor).where(AntragAuthor.antrag_id == antrag_id))
        await self.session.execute(
            delete(AntragAttachment).where(AntragAttachment.antrag_id == antrag_id)
        )
        await self.delete(antrag)
        return antrag
