from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from itsdangerous import BadSignature, URLSafeSerializer
from starlette.responses import Response

from fscs_backend.auth.identity import Identity
from fscs_backend.logging_config import log_with_fields

logger = logging.getLogger("fscs_backend.auth")

USER_COOKIE = "user"
ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
STATE_COOKIE = "oauth_state"


class ClaimSigner:
    """Signs and verifies the ``user`` claim cookie.

    Expiry lives inside the claim; the signature only proves we issued it.
    """

    def __init__(self, secret_key: str) -> None:
        self._serializer = URLSafeSerializer(secret_key, salt="fscs-user-claim")

    def dumps(self, identity: Identity) -> str:
        return self._serializer.dumps(identity.to_claim())

    def loads(self, raw: str) -> Identity | None:
        try:
            claim = self._serializer.loads(raw)
            return Identity.from_claim(claim)
        except (BadSignature, KeyError, TypeError, ValueError, json.JSONDecodeError):
            log_with_fields(logger, logging.INFO, "discarding invalid user claim")
            return None


@dataclass(frozen=True)
class RenewedCredentials:
    access_token: str
    refresh_token: str
    identity: Identity


def set_auth_cookies(
    response: Response,
    credentials: RenewedCredentials,
    *,
    signer: ClaimSigner,
    max_age: int,
) -> None:
    values = {
        REFRESH_TOKEN_COOKIE: credentials.refresh_token,
        ACCESS_TOKEN_COOKIE: credentials.access_token,
        USER_COOKIE: signer.dumps(credentials.identity),
    }
    for key, value in values.items():
        if not value:
            continue
        response.set_cookie(
            key,
            value,
            max_age=max_age,
            path="/",
            secure=True,
            httponly=key != USER_COOKIE,
            samesite="none",
        )


def clear_auth_cookies(response: Response) -> None:
    for key in (REFRESH_TOKEN_COOKIE, ACCESS_TOKEN_COOKIE, USER_COOKIE):
        response.delete_cookie(key, path="/", secure=True, samesite="none")
