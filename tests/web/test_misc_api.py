from __future__ import annotations

import pytest
from httpx import AsyncClient

from fscs_backend.testing.web_test_helpers import as_user, create_antrag, create_sitzung

MANAGER = as_user("manager", "fsr", name="Mona Manager")
MEMBER = as_user("member", "member", name="Max Member")


@pytest.mark.asyncio
async def test_door_state_history(client: AsyncClient) -> None:
    resp = await client.get("/api/doorstate")
    assert resp.status_code == 404

    resp = await client.post(
        "/api/doorstate", json={"time": "2024-05-01T08:00:00Z", "is_open": True}, headers=MEMBER
    )
    assert resp.status_code == 401

    for time, is_open in (("2024-05-01T08:00:00Z", True), ("2024-05-01T18:00:00Z", False)):
        resp = await client.post(
            "/api/doorstate", json={"time": time, "is_open": is_open}, headers=MANAGER
        )
        assert resp.status_code == 201

    resp = await client.get("/api/doorstate")
    assert resp.json()["is_open"] is False

    resp = await client.get(
        "/api/doorstate/between",
        params={"start": "2024-05-01T00:00:00Z", "end": "2024-05-01T12:00:00Z"},
    )
    assert [s["is_open"] for s in resp.json()] == [True]

    resp = await client.get(
        "/api/doorstate/between",
        params={"start": "2024-05-02T00:00:00Z", "end": "2024-05-01T00:00:00Z"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_door_state_defaults_to_now(client: AsyncClient) -> None:
    resp = await client.post("/api/doorstate", json={"is_open": True}, headers=MANAGER)

    assert resp.status_code == 201
    resp = await client.get("/api/doorstate")
    assert resp.json()["is_open"] is True


@pytest.mark.asyncio
async def test_template_crud(client: AsyncClient) -> None:
    body = {"name": "einladung", "content": "Hallo"}
    resp = await client.post("/api/templates", json=body, headers=MEMBER)
    assert resp.status_code == 401

    resp = await client.post("/api/templates", json=body, headers=MANAGER)
    assert resp.status_code == 201
    resp = await client.post("/api/templates", json=body, headers=MANAGER)
    assert resp.status_code == 400

    resp = await client.patch(
        "/api/templates/einladung", json={"content": "Moin"}, headers=MANAGER
    )
    assert resp.json() == {"name": "einladung", "content": "Moin"}

    resp = await client.get("/api/templates")
    assert [t["name"] for t in resp.json()] == ["einladung"]

    resp = await client.delete("/api/templates/einladung", headers=MANAGER)
    assert resp.status_code == 200
    resp = await client.get("/api/templates/einladung")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_render_sitzung_document(client: AsyncClient) -> None:
    sitzung = await create_sitzung(client, MANAGER, location="room B")
    resp = await client.post(
        f"/api/sitzungen/{sitzung['id']}/tops",
        json={"name": "Finanzen", "content": "", "kind": "normal"},
        headers=MANAGER,
    )
    top = resp.json()
    antrag = await create_antrag(client, MEMBER, title="Buy chairs")
    await client.patch(
        f"/api/sitzungen/{sitzung['id']}/tops/{top['id']}/assoc",
        json={"antrag_id": antrag["id"]},
        headers=MANAGER,
    )
    source = (
        "Sitzung in {{ sitzung.location }}\n"
        "{% for top in sitzung.tops %}"
        "TOP {{ top.weight }}: {{ top.name }}\n"
        "{% for antrag in top.antraege %}- {{ antrag.titel }}\n{% endfor %}"
        "{% endfor %}"
    )
    await client.post("/api/templates", json={"name": "agenda", "content": source}, headers=MANAGER)

    resp = await client.get(f"/api/sitzungen/{sitzung['id']}/template/agenda")

    assert resp.status_code == 200
    assert resp.text == "Sitzung in room B\nTOP 1: Finanzen\n- Buy chairs\n"


@pytest.mark.asyncio
async def test_render_reports_template_errors(client: AsyncClient) -> None:
    sitzung = await create_sitzung(client, MANAGER)
    await client.post(
        "/api/templates", json={"name": "broken", "content": "{% for %}"}, headers=MANAGER
    )
    await client.post(
        "/api/templates",
        json={"name": "escape", "content": "{{ ''.__class__ }}"},
        headers=MANAGER,
    )

    broken = await client.get(f"/api/sitzungen/{sitzung['id']}/template/broken")
    escape = await client.get(f"/api/sitzungen/{sitzung['id']}/template/escape")
    missing = await client.get(f"/api/sitzungen/{sitzung['id']}/template/missing")

    assert broken.status_code == 400
    assert escape.status_code == 400
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_legislative_periods(client: AsyncClient) -> None:
    resp = await client.post("/api/legislative-periods", json={"name": "2024"}, headers=MEMBER)
    assert resp.status_code == 401

    resp = await client.post("/api/legislative-periods", json={"name": "2024"}, headers=MANAGER)
    assert resp.status_code == 201
    period = resp.json()

    resp = await client.post(
        "/api/sitzungen",
        json={
            "datetime": "2024-09-10T10:30:00Z",
            "location": "room A",
            "legislative_period_id": period["id"],
        },
        headers=MANAGER,
    )
    sitzung = resp.json()

    resp = await client.patch(
        f"/api/legislative-periods/{period['id']}", json={"name": "2024/25"}, headers=MANAGER
    )
    assert resp.json()["name"] == "2024/25"

    resp = await client.get(f"/api/legislative-periods/{period['id']}/sitzungen")
    assert [s["id"] for s in resp.json()] == [sitzung["id"]]

    resp = await client.delete(f"/api/legislative-periods/{period['id']}", headers=MANAGER)
    assert resp.status_code == 200
    resp = await client.get(f"/api/legislative-periods/{period['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unknown_calendar_is_not_found(client: AsyncClient) -> None:
    assert (await client.get("/api/calendar")).json() == []
    resp = await client.get("/api/calendar/fsr")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Unknown calendar"}


@pytest.mark.asyncio
async def test_errors_are_json_and_requests_are_tagged(client: AsyncClient) -> None:
    resp = await client.get("/api/sitzungen/not-a-uuid", headers={"X-Request-ID": "req-42"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid request"
    assert resp.headers["X-Request-ID"] == "req-42"

    resp = await client.get("/api/antraege/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Antrag not found"}
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["/api/doorstate/between", "/api/sitzungen/between"])
async def test_windows_accept_naive_and_aware_bounds(client: AsyncClient, url: str) -> None:
    ok = await client.get(url, params={"start": "2024-01-01T00:00:00", "end": "2024-01-02T00:00:00Z"})
    reversed_ = await client.get(
        url, params={"start": "2024-01-02T00:00:00", "end": "2024-01-01T00:00:00+00:00"}
    )

    assert ok.status_code == 200
    assert ok.json() == []
    assert reversed_.status_code == 400


@pytest.mark.asyncio
async def test_rendered_persons_expose_user_names_only_to_view_protected(
    client: AsyncClient,
) -> None:
    sitzung = await create_sitzung(client, MANAGER)
    resp = await client.put(
        "/api/persons",
        json={"first_name": "Alice", "last_name": "Person", "user_name": "alice"},
        headers=MANAGER,
    )
    assert resp.status_code == 201
    await client.post(
        "/api/templates",
        json={"name": "people", "content": "{% for p in persons %}{{ p.user_name }}{% endfor %}"},
        headers=MANAGER,
    )
    await client.post(
        "/api/templates",
        json={"name": "names", "content": "{% for p in persons %}{{ p.name }}{% endfor %}"},
        headers=MANAGER,
    )
    url = f"/api/sitzungen/{sitzung['id']}/template"

    anonymous = await client.get(f"{url}/people")
    member = await client.get(f"{url}/people", headers=MEMBER)
    manager = await client.get(f"{url}/people", headers=MANAGER)
    names = await client.get(f"{url}/names")

    assert anonymous.status_code == 400
    assert member.status_code == 400
    assert manager.text == "alice"
    assert names.text == "Alice Person"
