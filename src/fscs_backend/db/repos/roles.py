from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import delete, select

from fscs_backend.db.models import Role, RoleAssignment
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class RoleRepository(BaseRepository[Role]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Role)

    async def create(self, name: str) -> Role:
        existing = await self.get(name)
        if existing is not None:
            return existing
        return await self.add(Role(name=name))

    async def list_all(self) -> list[Role]:
        return await self.list_where(order_by=Role.name)

    async def delete_by_name(self, name: str) -> Role | None:
        role = await self.get(name)
        if role is None:
            return None
        await self.session.execute(delete(RoleAssignment).where(RoleAssignment.role == name))
        await self.delete(role)
        return role


class RoleAssignmentRepository(BaseRepository[RoleAssignment]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, RoleAssignment)

    async def assign(
        self,
        *,
        person_id: uuid.UUID,
        role: str,
        start_date: date,
        end_date: date,
    ) -> RoleAssignment:
        await RoleRepository(self.conn).create(role)
        return await self.add(
            RoleAssignment(
                person_id=person_id,
                role=role,
                start_date=start_date,
                end_date=end_date,
            )
        )

    async def revoke(self, *, person_id: uuid.UUID, role: str) -> list[RoleAssignment]:
        result = await self.session.execute(
            delete(RoleAssignment)
            .where(RoleAssignment.person_id == person_id, RoleAssignment.role == role)
            .returning(RoleAssignment)
        )
        return list(result.scalars().all())

    async def for_person(self, person_id: uuid.UUID, *, at: date | None = None) -> list[RoleAssignment]:
        stmt = select(RoleAssignment).where(RoleAssignment.person_id == person_id)
        if at is not None:
            stmt = stmt.where(RoleAssignment.start_date <= at, RoleAssignment.end_date >= at)
        result = await self.session.execute(
            stmt.order_by(RoleAssignment.start_date, RoleAssignment.role)
        )
        return list(result.scalars().all())
