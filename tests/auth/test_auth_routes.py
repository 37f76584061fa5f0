from __future__ import annotations

import time
from contextlib import AbstractAsyncContextManager
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient

from fscs_backend.auth.provider import TokenSet
from fscs_backend.auth.session import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, USER_COOKIE
from fscs_backend.db import Database, DatabaseTransaction
from fscs_backend.testing.web_test_helpers import FakeIdentityProvider, as_user, user_cookie

ALICE = {
    "sub": "alice",
    "name": "Alice Example",
    "preferred_username": "alice",
    "groups": ["fsr"],
}
MANAGER = as_user("manager", "fsr", name="Mona Manager")


def _set_cookie_names(headers: list[str]) -> set[str]:
    return {header.split("=", 1)[0] for header in headers}


@pytest.mark.asyncio
async def test_login_redirects_to_provider_with_state_cookie(client: AsyncClient) -> None:
    resp = await client.get("/auth/login", params={"path": "/sitzungen"})

    assert resp.status_code == 303
    state = parse_qs(urlparse(resp.headers["location"]).query)["state"][0]
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f'oauth_state="{state}:/sitzungen"') or cookie.startswith(
        f"oauth_state={state}:/sitzungen"
    )
    assert "Path=/auth" in cookie
    assert "HttpOnly" in cookie


@pytest.mark.asyncio
async def test_callback_provisions_person_and_sets_cookies(
    client: AsyncClient, identity_provider: FakeIdentityProvider
) -> None:
    identity_provider.codes["code-1"] = TokenSet(
        access_token="acc-1", refresh_token="ref-1", expires_at=None
    )
    identity_provider.userinfo_by_token["acc-1"] = ALICE

    login = await client.get("/auth/login", params={"path": "//evil.example"})
    state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]
    resp = await client.get("/auth/callback", params={"code": "code-1", "state": state})

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
    assert {USER_COOKIE, ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE} <= _set_cookie_names(
        resp.headers.get_list("set-cookie")
    )
    assert identity_provider.calls == ["exchange:code-1", "userinfo:acc-1"]

    client.cookies.clear()
    resp = await client.get("/api/persons/by-username/test-alice", headers=MANAGER)
    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Alice"
    assert resp.json()["last_name"] == "Example"


@pytest.mark.asyncio
async def test_callback_rejects_state_mismatch(
    client: AsyncClient, identity_provider: FakeIdentityProvider
) -> None:
    await client.get("/auth/login")

    resp = await client.get("/auth/callback", params={"code": "code-1", "state": "forged"})

    assert resp.status_code == 401
    assert identity_provider.calls == []


@pytest.mark.asyncio
async def test_me_via_bearer_token(
    client: AsyncClient, identity_provider: FakeIdentityProvider
) -> None:
    identity_provider.userinfo_by_token["acc-1"] = ALICE

    resp = await client.get("/auth/me", headers={"Authorization": "Bearer acc-1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["sub"] == "alice"
    assert body["groups"] == ["fsr"]
    assert "ManageSitzungen" in body["capabilities"]


@pytest.mark.asyncio
async def test_rejected_bearer_token_is_anonymous(client: AsyncClient) -> None:
    resp = await client.get("/auth/me", headers={"Authorization": "Bearer unknown"})

    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_expired_claim_is_refreshed_and_cookies_renewed(
    client: AsyncClient, identity_provider: FakeIdentityProvider
) -> None:
    identity_provider.refreshable["ref-1"] = TokenSet(
        access_token="acc-2", refresh_token="ref-2", expires_at=int(time.time()) + 3600
    )
    identity_provider.userinfo_by_token["acc-2"] = ALICE
    expired = user_cookie("alice", "fsr", exp=int(time.time()) - 10)

    resp = await client.get(
        "/auth/me", headers={"Cookie": f"{expired}; {REFRESH_TOKEN_COOKIE}=ref-1"}
    )

    assert resp.status_code == 200
    assert resp.json()["sub"] == "alice"
    assert identity_provider.calls == ["refresh:ref-1", "userinfo:acc-2"]
    renewed = resp.headers.get_list("set-cookie")
    assert {USER_COOKIE, ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE} <= _set_cookie_names(renewed)
    assert any(h.startswith(f"{REFRESH_TOKEN_COOKIE}=ref-2") for h in renewed)


@pytest.mark.asyncio
async def test_failed_refresh_leaves_caller_anonymous(
    client: AsyncClient, identity_provider: FakeIdentityProvider
) -> None:
    expired = user_cookie("alice", "fsr", exp=int(time.time()) - 10)

    resp = await client.get(
        "/auth/me", headers={"Cookie": f"{expired}; {REFRESH_TOKEN_COOKIE}=stale"}
    )

    assert resp.status_code == 401
    assert "set-cookie" not in resp.headers


@pytest.mark.asyncio
async def test_logout_clears_cookies(client: AsyncClient) -> None:
    resp = await client.get("/auth/logout", params={"path": "/done"}, headers=MANAGER)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/done"
    cleared = resp.headers.get_list("set-cookie")
    assert _set_cookie_names(cleared) == {USER_COOKIE, ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE}
    assert all("Max-Age=0" in header for header in cleared)


@pytest.mark.asyncio
async def test_callback_opens_transaction_only_after_provider_calls(
    client: AsyncClient,
    identity_provider: FakeIdentityProvider,
    test_database: Database,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    identity_provider.codes["code-1"] = TokenSet(
        access_token="acc-1", refresh_token="ref-1", expires_at=None
    )
    identity_provider.userinfo_by_token["acc-1"] = ALICE
    calls_at_open: list[list[str]] = []
    original = test_database.transaction

    def recording_transaction() -> AbstractAsyncContextManager[DatabaseTransaction]:
        calls_at_open.append(list(identity_provider.calls))
        return original()

    monkeypatch.setattr(test_database, "transaction", recording_transaction)

    rejected = await client.get("/auth/callback", params={"code": "code-1", "state": "forged"})
    assert rejected.status_code == 401
    assert calls_at_open == []

    login = await client.get("/auth/login")
    state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]
    resp = await client.get("/auth/callback", params={"code": "code-1", "state": state})

    assert resp.status_code == 303
    assert calls_at_open == [["exchange:code-1", "userinfo:acc-1"]]
