from __future__ import annotations

from fastapi import APIRouter, Depends

from fscs_backend.auth.guards import require_capability
from fscs_backend.capabilities import Capability
from fscs_backend.db import DatabaseConnection, DatabaseTransaction, get_connection, get_transaction
from fscs_backend.db.repos import TemplateRepository
from fscs_backend.errors import ValidationError
from fscs_backend.web.routes.common import found
from fscs_backend.web.schemas import TemplateCreate, TemplateOut, TemplateUpdate

router = APIRouter(prefix="/api/templates", tags=["templates"])

_manage = [Depends(require_capability(Capability.manage_sitzungen))]


@router.get("")
async def list_templates(conn: DatabaseConnection = Depends(get_connection)) -> list[TemplateOut]:
    return [TemplateOut.build(t) for t in await TemplateRepository(conn).list_all()]


@router.get("/{name}")
async def get_template(
    name: str,
    conn: DatabaseConnection = Depends(get_connection),
) -> TemplateOut:
    return TemplateOut.build(found(await TemplateRepository(conn).get_by_name(name), "Template"))


@router.post("", status_code=201, dependencies=_manage)
async def create_template(
    payload: TemplateCreate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> TemplateOut:
    templates = TemplateRepository(tx)
    if await templates.get_by_name(payload.name) is not None:
        raise ValidationError("Template already exists")
    template = await templates.create(name=payload.name, content=payload.content)
    await tx.commit()
    return TemplateOut.build(template)


@router.patch("/{name}", dependencies=_manage)
async def update_template(
    name: str,
    payload: TemplateUpdate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> TemplateOut:
    template = found(await TemplateRepository(tx).update_content(name, payload.content), "Template")
    await tx.commit()
    return TemplateOut.build(template)


@router.delete("/{name}", dependencies=_manage)
async def delete_template(
    name: str,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> TemplateOut:
    template = found(await TemplateRepository(tx).delete_by_name(name), "Template")
    await tx.commit()
    return TemplateOut.build(template)
