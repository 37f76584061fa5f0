from __future__ import annotations

import logging
from collections.abc import Mapping

from fscs_backend.auth.identity import Identity
from fscs_backend.logging_config import log_security_audit_event


def _actor_fields(*, actor: Identity | None = None) -> dict[str, object]:
    if actor is None:
        return {"actor": "anonymous"}
    return {
        "actor_sub": actor.sub,
        "actor_username": actor.preferred_username,
        "actor_groups": ",".join(actor.groups) or None,
    }


def _emit_security_audit(
    *,
    namespace: str,
    event: str,
    outcome: str,
    level: int = logging.INFO,
    reason: str | None = None,
    actor: Identity | None = None,
    fields: Mapping[str, object] | None = None,
) -> None:
    payload: dict[str, object] = {}
    payload.update(_actor_fields(actor=actor))
    if fields:
        payload.update(fields)

    if reason is not None:
        payload["reason"] = reason

    log_security_audit_event(
        f"{namespace}.{event}",
        outcome,
        level=level,
        **payload,
    )


def audit_auth_denied(
    *,
    event: str,
    reason: str,
    actor: Identity | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        namespace="auth",
        event=event,
        outcome="denied",
        level=logging.WARNING,
        reason=reason,
        actor=actor,
        fields=fields,
    )


def audit_auth_success(
    *,
    event: str,
    actor: Identity | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        namespace="auth",
        event=event,
        outcome="success",
        actor=actor,
        fields=fields,
    )


def audit_access_denied(
    *,
    event: str,
    reason: str,
    actor: Identity | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        namespace="access",
        event=event,
        outcome="denied",
        reason=reason,
        actor=actor,
        fields=fields,
    )
