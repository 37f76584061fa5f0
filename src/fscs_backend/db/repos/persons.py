from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy import select

from fscs_backend.db.models import Person, RoleAssignment
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class PersonRepository(BaseRepository[Person]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Person)

    async def create(
        self,
        *,
        first_name: str,
        last_name: str,
        user_name: str,
        matrix_id: str | None = None,
    ) -> Person:
        return await self.add(
            Person(
                first_name=first_name,
                last_name=last_name,
                user_name=user_name,
                matrix_id=matrix_id,
            )
        )

    async def upsert_by_user_name(
        self,
        *,
        user_name: str,
        first_name: str,
        last_name: str,
    ) -> Person:
        person = await self.get_by_user_name(user_name)
        if person is None:
            return await self.create(first_name=first_name, last_name=last_name, user_name=user_name)
        return await self.patch(person, {"first_name": first_name, "last_name": last_name})

    async def list_all(self) -> list[Person]:
        return await self.list_where(order_by=(Person.last_name, Person.first_name))

    async def get_by_id(self, person_id: uuid.UUID) -> Person | None:
        return await self.get(person_id)

    async def get_by_user_name(self, user_name: str) -> Person | None:
        return await self.first_where(Person.user_name == user_name)

    async def get_by_matrix_id(self, matrix_id: str) -> Person | None:
        return await self.first_where(Person.matrix_id == matrix_id)

    async def with_role_at(self, role: str, at: date) -> list[Person]:
        result = await self.session.execute(
            select(Person)
            .join(RoleAssignment, RoleAssignment.person_id == Person.id)
            .where(
                RoleAssignment.role == role,
                RoleAssignment.start_date <= at,
                RoleAssignment.end_date >= at,
            )
            .distinct()
            .order_by(Person.last_name, Person.first_name)
        )
        return list(result.scalars().all())

    async def update(self, person_id: uuid.UUID, changes: Mapping[str, Any]) -> Person | None:
        person = await self.get(person_id)
        if person is None:
            return None
        return await self.patch(person, changes)

    async def delete_by_id(self, person_id: uuid.UUID) -> Person | None:
        person = await self.get(person_id)
        if person is None:
            return None
        await self.delete(person)
        return person
