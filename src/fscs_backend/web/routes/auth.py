from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from starlette.responses import Response

import fscs_backend.db as db
from fscs_backend.auth.guards import get_capability_map, require_identity
from fscs_backend.auth.identity import Identity
from fscs_backend.auth.provider import IdentityProvider
from fscs_backend.auth.resolve import IdentityResolver
from fscs_backend.auth.session import (
    STATE_COOKIE,
    ClaimSigner,
    clear_auth_cookies,
    set_auth_cookies,
)
from fscs_backend.errors import UnauthorizedError
from fscs_backend.logging_config import log_with_fields
from fscs_backend.security.audit import audit_auth_denied, audit_auth_success
from fscs_backend.services import provision_person_for_identity
from fscs_backend.settings import Settings
from fscs_backend.web.routes.common import get_app_settings
from fscs_backend.web.schemas import MeOut

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("fscs_backend.auth")

STATE_COOKIE_MAX_AGE_SECONDS = 10 * 60


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_resolver(request: Request) -> IdentityResolver:
    return request.app.state.resolver


def get_signer(request: Request) -> ClaimSigner:
    return request.app.state.signer


def safe_redirect_path(path: str | None) -> str:
    """Only same-site absolute paths are accepted as post-login targets."""
    if not path or not path.startswith("/") or path.startswith("//") or "\\" in path:
        return "/"
    return path


def _split_state(raw: str | None) -> tuple[str, str] | None:
    if not raw:
        return None
    state, sep, path = raw.partition(":")
    if not sep or not state:
        return None
    return state, safe_redirect_path(path)


@router.get("/login", response_class=RedirectResponse)
async def login(
    path: str | None = Query(default=None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Response:
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(url=provider.authorization_url(state), status_code=303)
    response.set_cookie(
        STATE_COOKIE,
        f"{state}:{safe_redirect_path(path)}",
        max_age=STATE_COOKIE_MAX_AGE_SECONDS,
        path="/auth",
        secure=True,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/callback", response_class=RedirectResponse)
async def callback(
    request: Request,
    code: str = Query(min_length=1),
    state: str = Query(min_length=1),
    provider: IdentityProvider = Depends(get_identity_provider),
    resolver: IdentityResolver = Depends(get_resolver),
    signer: ClaimSigner = Depends(get_signer),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    expected = _split_state(request.cookies.get(STATE_COOKIE))
    if expected is None or not secrets.compare_digest(expected[0], state):
        audit_auth_denied(event="login_callback", reason="state_mismatch")
        raise UnauthorizedError()
    _, target = expected

    # Both provider round trips finish before a pooled connection is taken.
    tokens = await provider.exchange_code(code)
    credentials = await resolver.login(tokens)
    async with db.database.transaction() as tx:
        person = await provision_person_for_identity(
            tx,
            identity=credentials.identity,
            source_name=settings.oauth_source_name,
        )
        await tx.commit()
    audit_auth_success(event="login", actor=credentials.identity, person_id=person.id)

    response = RedirectResponse(url=target, status_code=303)
    set_auth_cookies(
        response,
        credentials,
        signer=signer,
        max_age=settings.cookie_max_age_seconds,
    )
    response.delete_cookie(STATE_COOKIE, path="/auth", secure=True, httponly=True, samesite="lax")
    return response


@router.get("/logout", response_class=RedirectResponse)
async def logout(request: Request, path: str | None = Query(default=None)) -> Response:
    identity: Identity | None = getattr(request.state, "identity", None)
    if identity is not None:
        log_with_fields(logger, logging.INFO, "logout", sub=identity.sub)
    response = RedirectResponse(url=safe_redirect_path(path), status_code=303)
    clear_auth_cookies(response)
    return response


@router.get("/me")
async def me(request: Request, identity: Identity = Depends(require_identity)) -> MeOut:
    capabilities = get_capability_map(request).capabilities_of(identity.groups)
    return MeOut(
        sub=identity.sub,
        name=identity.name,
        preferred_username=identity.preferred_username,
        groups=list(identity.groups),
        capabilities=[c.value for c in capabilities],
    )
