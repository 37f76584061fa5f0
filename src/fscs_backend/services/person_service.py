from __future__ import annotations

from fscs_backend.auth.identity import Identity, person_user_name
from fscs_backend.db.models import Person
from fscs_backend.db.repos import PersonRepository
from fscs_backend.db.session import DatabaseConnection


async def provision_person_for_identity(
    conn: DatabaseConnection,
    *,
    identity: Identity,
    source_name: str,
) -> Person:
    first_name, last_name = identity.name_parts()
    return await PersonRepository(conn).upsert_by_user_name(
        user_name=person_user_name(source_name, identity.sub),
        first_name=first_name,
        last_name=last_name,
    )


async def person_for_identity(
    conn: DatabaseConnection,
    *,
    identity: Identity,
    source_name: str,
) -> Person | None:
    return await PersonRepository(conn).get_by_user_name(person_user_name(source_name, identity.sub))
