from __future__ import annotations

from datetime import date

import pytest

from fscs_backend.db import DatabaseTransaction
from fscs_backend.db.repos import (
    AbmeldungRepository,
    PersonRepository,
    RoleAssignmentRepository,
    RoleRepository,
)


@pytest.mark.asyncio
async def test_upsert_by_user_name_updates_names(tx: DatabaseTransaction) -> None:
    repo = PersonRepository(tx)
    created = await repo.upsert_by_user_name(user_name="oauth-1", first_name="Al", last_name="")
    updated = await repo.upsert_by_user_name(
        user_name="oauth-1", first_name="Alice", last_name="Example"
    )

    assert updated.id == created.id
    assert updated.name == "Alice Example"
    assert [p.user_name for p in await repo.list_all()] == ["oauth-1"]


@pytest.mark.asyncio
async def test_lookup_by_matrix_id(tx: DatabaseTransaction) -> None:
    repo = PersonRepository(tx)
    person = await repo.create(
        first_name="Alice", last_name="A", user_name="alice", matrix_id="@alice:example.org"
    )

    found = await repo.get_by_matrix_id("@alice:example.org")
    assert found is not None and found.id == person.id
    assert await repo.get_by_matrix_id("@nobody:example.org") is None


@pytest.mark.asyncio
async def test_role_interval_is_inclusive(tx: DatabaseTransaction) -> None:
    people = PersonRepository(tx)
    alice = await people.create(first_name="Alice", last_name="A", user_name="alice")
    await RoleAssignmentRepository(tx).assign(
        person_id=alice.id,
        role="Sitzungsleitung",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
    )

    for day in (date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 31)):
        assert [p.id for p in await people.with_role_at("Sitzungsleitung", day)] == [alice.id]
    assert await people.with_role_at("Sitzungsleitung", date(2023, 12, 31)) == []
    assert await people.with_role_at("Sitzungsleitung", date(2024, 2, 1)) == []

    roles = await RoleRepository(tx).list_all()
    assert [r.name for r in roles] == ["Sitzungsleitung"]


@pytest.mark.asyncio
async def test_revoke_role_removes_all_assignments(tx: DatabaseTransaction) -> None:
    alice = await PersonRepository(tx).create(first_name="Alice", last_name="A", user_name="alice")
    assignments = RoleAssignmentRepository(tx)
    for year in (2023, 2024):
        await assignments.assign(
            person_id=alice.id,
            role="Finanzen",
            start_date=date(year, 1, 1),
            end_date=date(year, 12, 31),
        )

    revoked = await assignments.revoke(person_id=alice.id, role="Finanzen")

    assert len(revoked) == 2
    assert await assignments.for_person(alice.id) == []


@pytest.mark.asyncio
async def test_abmeldung_create_merges_overlaps(tx: DatabaseTransaction) -> None:
    alice = await PersonRepository(tx).create(first_name="Alice", last_name="A", user_name="alice")
    repo = AbmeldungRepository(tx)

    await repo.create(person_id=alice.id, start_date=date(2024, 3, 1), end_date=date(2024, 3, 10))
    merged = await repo.create(
        person_id=alice.id, start_date=date(2024, 3, 5), end_date=date(2024, 3, 20)
    )

    assert (merged.start_date, merged.end_date) == (date(2024, 3, 1), date(2024, 3, 20))
    assert len(await repo.for_person(alice.id)) == 1


@pytest.mark.asyncio
async def test_abmeldung_revoke_splits_range(tx: DatabaseTransaction) -> None:
    alice = await PersonRepository(tx).create(first_name="Alice", last_name="A", user_name="alice")
    repo = AbmeldungRepository(tx)
    await repo.create(person_id=alice.id, start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))

    remaining = await repo.revoke(
        person_id=alice.id, start_date=date(2024, 3, 10), end_date=date(2024, 3, 20)
    )

    assert [(a.start_date, a.end_date) for a in remaining] == [
        (date(2024, 3, 1), date(2024, 3, 9)),
        (date(2024, 3, 21), date(2024, 3, 31)),
    ]
    absent = await repo.at(date(2024, 3, 15))
    assert absent == []
    on_day = await repo.at(date(2024, 3, 9))
    assert [person.id for _, person in on_day] == [alice.id]
