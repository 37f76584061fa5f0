from __future__ import annotations

import uuid
from datetime import date, timedelta

from sqlalchemy import select

from fscs_backend.db.models import Abmeldung, Person
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.session import DatabaseConnection


class AbmeldungRepository(BaseRepository[Abmeldung]):
    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn, Abmeldung)

    async def _overlapping(self, person_id: uuid.UUID, start: date, end: date) -> list[Abmeldung]:
        return await self.list_where(
            Abmeldung.person_id == person_id,
            Abmeldung.start_date <= end,
            Abmeldung.end_date >= start,
        )

    async def create(self, *, person_id: uuid.UUID, start_date: date, end_date: date) -> Abmeldung:
        """Record an absence, folding every overlapping absence of the person into it."""
        merged_start = start_date
        merged_end = end_date
        for existing in await self._overlapping(person_id, start_date, end_date):
            merged_start = min(merged_start, existing.start_date)
            merged_end = max(merged_end, existing.end_date)
            await self.delete(existing, flush=False)

        return await self.add(
            Abmeldung(person_id=person_id, start_date=merged_start, end_date=merged_end)
        )

    async def revoke(
        self, *, person_id: uuid.UUID, start_date: date, end_date: date
    ) -> list[Abmeldung]:
        """Remove ``[start_date, end_date]`` from the person's absences.

        Absences only partly covered keep the days outside the revoked range,
        which may split one absence into two.
        """
        for existing in await self._overlapping(person_id, start_date, end_date):
            if existing.start_date < start_date:
                self.session.add(
                    Abmeldung(
                        person_id=person_id,
                        start_date=existing.start_date,
                        end_date=start_date - timedelta(days=1),
                    )
                )
            if existing.end_date > end_date:
                self.session.add(
                    Abmeldung(
                        person_id=person_id,
                        start_date=end_date + timedelta(days=1),
                        end_date=existing.end_date,
                    )
                )
            await self.delete(existing, flush=False)

        await self.session.flush()
        return await self.for_person(person_id)

    async def for_person(self, person_id: uuid.UUID) -> list[Abmeldung]:
        return await self.list_where(
            Abmeldung.person_id == person_id, order_by=Abmeldung.start_date
        )

    async def at(self, day: date) -> list[tuple[Abmeldung, Person]]:
        result = await self.session.execute(
            select(Abmeldung, Person)
            .join(Person, Person.id == Abmeldung.person_id)
            .where(Abmeldung.start_date <= day, Abmeldung.end_date >= day)
            .order_by(Person.last_name, Person.first_name)
        )
        return [(row[0], row[1]) for row in result.all()]
