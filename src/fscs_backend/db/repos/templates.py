from __future__ import annotations

from fscs_backend.db.models import Template
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class TemplateRepository(BaseRepository[Template]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Template)

    async def create(self, *, name: str, content: str) -> Template:
        return await self.add(Template(name=name, content=content))

    async def get_by_name(self, name: str) -> Template | None:
        return await self.get(name)

    async def list_all(self) -> list[Template]:
        return await self.list_where(order_by=Template.name)

    async def update_content(self, name: str, content: str) -> Template | None:
        template = await self.get(name)
        if template is None:
            return None
        return await self.patch(template, {"content": content})

    async def delete_by_name(self, name: str) -> Template | None:
        template = await self.get(name)
        if template is None:
            return None
        await self.delete(template)
        return template
