from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from fscs_backend.errors import UpstreamError
from fscs_backend.logging_config import log_with_fields
from fscs_backend.settings import Settings

logger = logging.getLogger("fscs_backend.auth.provider")


@dataclass(frozen=True)
class TokenSet:
    access_token: str
    refresh_token: str | None
    expires_at: int | None


class IdentityProvider(Protocol):
    def authorization_url(self, state: str) -> str: ...

    async def exchange_code(self, code: str) -> TokenSet: ...

    async def refresh(self, refresh_token: str) -> TokenSet: ...

    async def fetch_userinfo(self, access_token: str) -> Mapping[str, Any]: ...


@dataclass(frozen=True)
class OAuthConfig:
    client_id: str
    client_secret: str
    auth_url: str
    token_url: str
    userinfo_url: str
    redirect_url: str | None
    scope: str
    timeout_seconds: float


def get_oauth_config(settings: Settings) -> OAuthConfig | None:
    if (
        settings.oauth_client_id is None
        or settings.oauth_client_secret is None
        or settings.oauth_auth_url is None
        or settings.oauth_token_url is None
        or settings.oauth_userinfo_url is None
    ):
        return None

    return OAuthConfig(
        client_id=settings.oauth_client_id,
        client_secret=settings.oauth_client_secret.get_secret_value(),
        auth_url=settings.oauth_auth_url,
        token_url=settings.oauth_token_url,
        userinfo_url=settings.oauth_userinfo_url,
        redirect_url=settings.oauth_redirect_url,
        scope=settings.oauth_scope,
        timeout_seconds=settings.oauth_timeout_seconds,
    )


def _token_set(token: Mapping[str, Any]) -> TokenSet:
    expires_at = token.get("expires_at")
    if expires_at is None and token.get("expires_in") is not None:
        expires_at = int(time.time()) + int(token["expires_in"])
    return TokenSet(
        access_token=str(token["access_token"]),
        refresh_token=token.get("refresh_token"),
        expires_at=int(expires_at) if expires_at is not None else None,
    )


class OAuthIdentityProvider:
    """OAuth2 authorization-code client for the council's identity provider.

    Every call is a single round trip with the configured timeout; there is no
    retry. Failures surface as :class:`UpstreamError`.
    """

    def __init__(self, config: OAuthConfig) -> None:
        self.config = config

    def _client(self) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            scope=self.config.scope,
            redirect_uri=self.config.redirect_url,
            timeout=self.config.timeout_seconds,
        )

    def authorization_url(self, state: str) -> str:
        client = self._client()
        url, _ = client.create_authorization_url(self.config.auth_url, state=state)
        return str(url)

    async def exchange_code(self, code: str) -> TokenSet:
        try:
            async with self._client() as client:
                token = await client.fetch_token(self.config.token_url, code=code)
        except (AuthlibBaseError, httpx.HTTPError, KeyError) as exc:
            log_with_fields(logger, logging.WARNING, "code exchange failed", error=type(exc).__name__)
            raise UpstreamError("code exchange failed", source="oauth") from exc
        return _token_set(token)

    async def refresh(self, refresh_token: str) -> TokenSet:
        try:
            async with self._client() as client:
                token = await client.refresh_token(
                    self.config.token_url, refresh_token=refresh_token
                )
        except (AuthlibBaseError, httpx.HTTPError, KeyError) as exc:
            log_with_fields(logger, logging.WARNING, "token refresh failed", error=type(exc).__name__)
            raise UpstreamError("token refresh failed", source="oauth") from exc
        return _token_set(token)

    async def fetch_userinfo(self, access_token: str) -> Mapping[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                response = await client.get(
                    self.config.userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log_with_fields(logger, logging.WARNING, "userinfo request failed", error=type(exc).__name__)
            raise UpstreamError("userinfo request failed", source="oauth") from exc

        if not isinstance(payload, dict) or "sub" not in payload:
            raise UpstreamError("userinfo response without subject", source="oauth")
        return payload


class DisabledIdentityProvider:
    """Used when no OAuth client is configured: nobody can sign in."""

    def authorization_url(self, state: str) -> str:
        raise UpstreamError("login is not configured", source="oauth")

    async def exchange_code(self, code: str) -> TokenSet:
        raise UpstreamError("login is not configured", source="oauth")

    async def refresh(self, refresh_token: str) -> TokenSet:
        raise UpstreamError("login is not configured", source="oauth")

    async def fetch_userinfo(self, access_token: str) -> Mapping[str, Any]:
        raise UpstreamError("login is not configured", source="oauth")


def build_identity_provider(settings: Settings) -> IdentityProvider:
    config = get_oauth_config(settings)
    if config is None:
        return DisabledIdentityProvider()
    return OAuthIdentityProvider(config)
