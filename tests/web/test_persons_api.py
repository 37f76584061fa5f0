from __future__ import annotations

import pytest
from httpx import AsyncClient

from fscs_backend.testing.web_test_helpers import as_user, create_person

MANAGER = as_user("manager", "fsr", name="Mona Manager")
MEMBER = as_user("member", "member", name="Max Member")


@pytest.mark.asyncio
async def test_private_fields_need_view_protected(client: AsyncClient) -> None:
    person = await create_person(client, MANAGER, user_name="alice", first_name="Alice")

    public = await client.get(f"/api/persons/{person['id']}", headers=MEMBER)
    assert public.json() == {"id": person["id"], "name": "Alice Person"}

    private = await client.get("/api/persons", headers=MANAGER)
    assert private.json()[0]["user_name"] == "alice"


@pytest.mark.asyncio
async def test_person_mutations_need_manage_persons(client: AsyncClient) -> None:
    resp = await client.put(
        "/api/persons",
        json={"first_name": "Eve", "last_name": "E", "user_name": "eve"},
        headers=MEMBER,
    )
    assert resp.status_code == 401

    person = await create_person(client, MANAGER, user_name="bob", first_name="Bob")
    resp = await client.patch(
        f"/api/persons/{person['id']}", json={"matrix_id": "@bob:example.org"}, headers=MANAGER
    )
    assert resp.json()["matrix_id"] == "@bob:example.org"

    resp = await client.get("/api/persons/by-matrix-id/@bob:example.org", headers=MEMBER)
    assert resp.json()["id"] == person["id"]
    resp = await client.get("/api/persons/by-username/bob")
    assert resp.status_code == 401

    resp = await client.delete(f"/api/persons/{person['id']}", headers=MANAGER)
    assert resp.status_code == 200
    resp = await client.get(f"/api/persons/{person['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_role_assignment_and_lookup_by_role(client: AsyncClient) -> None:
    person = await create_person(client, MANAGER, user_name="alice", first_name="Alice")
    roles_url = f"/api/persons/{person['id']}/roles"

    resp = await client.put(
        roles_url,
        json={"role": "Finanzen", "start": "2024-01-01", "end": "2024-12-31"},
        headers=MANAGER,
    )
    assert resp.status_code == 201

    resp = await client.get("/api/persons/by-role", params={"role": "Finanzen", "date": "2024-06-01"})
    assert [p["id"] for p in resp.json()] == [person["id"]]
    resp = await client.get("/api/persons/by-role", params={"role": "Finanzen", "date": "2025-01-01"})
    assert resp.json() == []

    resp = await client.get("/api/roles")
    assert resp.json() == ["Finanzen"]

    resp = await client.request("DELETE", roles_url, json={"role": "Finanzen"}, headers=MANAGER)
    assert len(resp.json()) == 1
    resp = await client.get(roles_url, headers=MEMBER)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_role_assignment_rejects_reversed_interval(client: AsyncClient) -> None:
    person = await create_person(client, MANAGER, user_name="alice")

    resp = await client.put(
        f"/api/persons/{person['id']}/roles",
        json={"role": "Finanzen", "start": "2024-12-31", "end": "2024-01-01"},
        headers=MANAGER,
    )

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_members_manage_only_their_own_abmeldungen(client: AsyncClient) -> None:
    own = await create_person(client, MANAGER, user_name="test-member")
    other = await create_person(client, MANAGER, user_name="someone-else")
    span = {"start": "2024-03-01", "end": "2024-03-31"}

    resp = await client.put(f"/api/persons/{other['id']}/abmeldungen", json=span, headers=MEMBER)
    assert resp.status_code == 401

    resp = await client.put(f"/api/persons/{own['id']}/abmeldungen", json=span, headers=MEMBER)
    assert resp.status_code == 201

    resp = await client.request(
        "DELETE",
        f"/api/persons/{own['id']}/abmeldungen",
        json={"start": "2024-03-10", "end": "2024-03-20"},
        headers=MEMBER,
    )
    assert resp.status_code == 200
    assert [(a["start"], a["end"]) for a in resp.json()] == [
        ("2024-03-01", "2024-03-09"),
        ("2024-03-21", "2024-03-31"),
    ]


@pytest.mark.asyncio
async def test_roles_endpoint_requires_manage_persons(client: AsyncClient) -> None:
    resp = await client.put("/api/roles", json={"name": "Kasse"}, headers=MEMBER)
    assert resp.status_code == 401

    resp = await client.put("/api/roles", json={"name": "Kasse"}, headers=MANAGER)
    assert resp.status_code == 201
    assert resp.json() == "Kasse"

    resp = await client.request("DELETE", "/api/roles", json={"name": "Kasse"}, headers=MANAGER)
    assert resp.json() == "Kasse"
    resp = await client.request("DELETE", "/api/roles", json={"name": "Kasse"}, headers=MANAGER)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_lookups_hide_private_fields_without_view_protected(client: AsyncClient) -> None:
    person = await create_person(client, MANAGER, user_name="alice", first_name="Alice")
    await client.patch(
        f"/api/persons/{person['id']}", json={"matrix_id": "@a:example.org"}, headers=MANAGER
    )
    public = {"id": person["id"], "name": "Alice Person"}

    by_matrix = await client.get("/api/persons/by-matrix-id/@a:example.org", headers=MEMBER)
    by_username = await client.get("/api/persons/by-username/alice", headers=MEMBER)
    assert by_matrix.json() == public
    assert by_username.json() == public

    resp = await client.get("/api/persons/by-matrix-id/@a:example.org", headers=MANAGER)
    assert resp.json()["user_name"] == "alice"
    assert resp.json()["matrix_id"] == "@a:example.org"
