from __future__ import annotations

import uuid

from sqlalchemy import delete, select

from fscs_backend.db.models import AntragAttachment, Attachment
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class AttachmentRepository(BaseRepository[Attachment]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Attachment)

    async def create(self, filename: str) -> Attachment:
        return await self.add(Attachment(filename=filename))

    async def get_by_id(self, attachment_id: uuid.UUID) -> Attachment | None:
        return await self.get(attachment_id)

    async def link(self, *, antrag_id: uuid.UUID, attachment_id: uuid.UUID) -> None:
        self.session.add(AntragAttachment(antrag_id=antrag_id, attachment_id=attachment_id))
        await self.session.flush()

    async def for_antrag(self, antrag_id: uuid.UUID, attachment_id: uuid.UUID) -> Attachment | None:
        result = await self.session.execute(
            select(Attachment)
            .join(AntragAttachment, AntragAttachment.attachment_id == Attachment.id)
            .where(
                AntragAttachment.antrag_id == antrag_id,
                AntragAttachment.attachment_id == attachment_id,
            )
        )
        return result.scalars().first()

    async def delete_by_id(self, attachment_id: uuid.UUID) -> Attachment | None:
        attachment = await self.get(attachment_id)
        if attachment is None:
            return None
        await self.session.execute(
            delete(AntragAttachment).where(AntragAttachment.attachment_id == attachment_id)
        )
        await self.delete(attachment)
        return attachment
