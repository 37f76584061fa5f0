"""Per-request identity resolution.

The first matching source wins:

1. a signed ``user`` claim that is not within 30 seconds of expiry;
2. a present but expired (or nearly expired) claim, refreshed with the
   ``refresh_token`` cookie;
3. an ``Authorization: Bearer`` header, resolved through userinfo;
4. a ``refresh_token`` cookie alone, refreshed;
5. an ``access_token`` cookie alone, resolved through userinfo;
6. otherwise the caller is anonymous.

Every provider failure degrades to anonymous for this request. A successful
refresh returns renewed credentials for the response cookies.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from fscs_backend.auth.identity import Identity
from fscs_backend.auth.provider import IdentityProvider, TokenSet
from fscs_backend.auth.session import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    USER_COOKIE,
    ClaimSigner,
    RenewedCredentials,
)
from fscs_backend.errors import UpstreamError
from fscs_backend.logging_config import log_with_fields

logger = logging.getLogger("fscs_backend.auth")

CLAIM_EXPIRY_LEEWAY_SECONDS = 30


@dataclass(frozen=True)
class Resolution:
    identity: Identity | None
    renewed: RenewedCredentials | None = None
    source: str = "anonymous"


ANONYMOUS = Resolution(identity=None)


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@dataclass
class IdentityResolver:
    provider: IdentityProvider
    signer: ClaimSigner
    claim_ttl_seconds: int = 300
    clock: Callable[[], float] = time.time

    def _expiry(self, expires_at: int | None) -> int:
        default = int(self.clock()) + self.claim_ttl_seconds
        if expires_at is None:
            return default
        return min(expires_at, default)

    async def _from_access_token(self, access_token: str, *, source: str) -> Resolution:
        try:
            userinfo = await self.provider.fetch_userinfo(access_token)
        except UpstreamError:
            log_with_fields(logger, logging.WARNING, "access token rejected", source=source)
            return ANONYMOUS
        identity = Identity.from_userinfo(userinfo, exp=self._expiry(None))
        return Resolution(identity=identity, source=source)

    async def _refresh(self, refresh_token: str | None) -> Resolution:
        if not refresh_token:
            log_with_fields(logger, logging.WARNING, "session expired without refresh token")
            return ANONYMOUS
        try:
            tokens = await self.provider.refresh(refresh_token)
            userinfo = await self.provider.fetch_userinfo(tokens.access_token)
        except UpstreamError:
            log_with_fields(logger, logging.WARNING, "session refresh failed")
            return ANONYMOUS

        identity = Identity.from_userinfo(userinfo, exp=self._expiry(tokens.expires_at))
        renewed = RenewedCredentials(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token or refresh_token,
            identity=identity,
        )
        return Resolution(identity=identity, renewed=renewed, source="refresh")

    async def login(self, tokens: TokenSet) -> RenewedCredentials:
        """Credentials for a completed code exchange. Provider errors propagate."""
        userinfo = await self.provider.fetch_userinfo(tokens.access_token)
        identity = Identity.from_userinfo(userinfo, exp=self._expiry(tokens.expires_at))
        return RenewedCredentials(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token or "",
            identity=identity,
        )

    async def resolve(
        self,
        *,
        cookies: Mapping[str, str],
        authorization: str | None,
    ) -> Resolution:
        raw_claim = cookies.get(USER_COOKIE)
        claim = self.signer.loads(raw_claim) if raw_claim else None
        if claim is not None:
            if claim.is_fresh(self.clock(), leeway_seconds=CLAIM_EXPIRY_LEEWAY_SECONDS):
                return Resolution(identity=claim, source="claim")
            return await self._refresh(cookies.get(REFRESH_TOKEN_COOKIE))

        token = bearer_token(authorization)
        if token is not None:
            return await self._from_access_token(token, source="bearer")

        refresh_token = cookies.get(REFRESH_TOKEN_COOKIE)
        if refresh_token:
            return await self._refresh(refresh_token)

        access_token = cookies.get(ACCESS_TOKEN_COOKIE)
        if access_token:
            return await self._from_access_token(access_token, source="access_cookie")

        return ANONYMOUS
