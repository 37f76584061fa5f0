from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from fscs_backend.auth.guards import require_capability
from fscs_backend.capabilities import Capability
from fscs_backend.db import DatabaseConnection, DatabaseTransaction, get_connection, get_transaction
from fscs_backend.db.repos import RoleRepository
from fscs_backend.logging_config import log_with_fields
from fscs_backend.web.routes.common import found
from fscs_backend.web.schemas import RoleBody

router = APIRouter(prefix="/api/roles", tags=["roles"])
logger = logging.getLogger("fscs_backend.roles")

_manage = [Depends(require_capability(Capability.manage_persons))]


@router.get("")
async def list_roles(conn: DatabaseConnection = Depends(get_connection)) -> list[str]:
    return [role.name for role in await RoleRepository(conn).list_all()]


@router.put("", status_code=201, dependencies=_manage)
async def create_role(
    payload: RoleBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> str:
    role = await RoleRepository(tx).create(payload.name)
    await tx.commit()
    return role.name


@router.delete("", dependencies=_manage)
async def delete_role(
    payload: RoleBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> str:
    role = found(await RoleRepository(tx).delete_by_name(payload.name), "Role")
    await tx.commit()
    log_with_fields(logger, logging.INFO, "role deleted", role=role.name)
    return role.name
