from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request

from fscs_backend.auth.identity import Identity
from fscs_backend.capabilities import Capability, CapabilityMap
from fscs_backend.errors import UnauthorizedError
from fscs_backend.security.audit import audit_access_denied


def get_identity(request: Request) -> Identity | None:
    return getattr(request.state, "identity", None)


def get_capability_map(request: Request) -> CapabilityMap:
    return request.app.state.capabilities


async def require_identity(request: Request) -> Identity:
    identity = get_identity(request)
    if identity is None:
        audit_access_denied(
            event="authentication_required",
            reason="anonymous",
            path=request.url.path,
        )
        raise UnauthorizedError()
    return identity


def require_capability(capability: Capability) -> Callable[[Request], Awaitable[Identity]]:
    """Route dependency that rejects callers lacking ``capability``.

    List it before any connection or transaction dependency so a denied
    request never touches the store.
    """

    async def dependency(request: Request) -> Identity:
        identity = get_identity(request)
        capabilities = get_capability_map(request)
        if identity is None or not capabilities.has_capability(identity.groups, capability):
            audit_access_denied(
                event="capability_required",
                reason="missing_capability" if identity is not None else "anonymous",
                actor=identity,
                capability=capability.value,
                path=request.url.path,
            )
            raise UnauthorizedError()
        return identity

    return dependency


def has_capability(request: Request, capability: Capability) -> bool:
    identity = get_identity(request)
    if identity is None:
        return False
    return get_capability_map(request).has_capability(identity.groups, capability)
