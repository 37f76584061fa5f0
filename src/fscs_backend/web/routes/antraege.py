from __future__ import annotations

import logging
import uuid
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, UploadFile
from fastapi.responses import Response

from fscs_backend.auth.guards import get_capability_map, require_capability, require_identity
from fscs_backend.auth.identity import Identity
from fscs_backend.capabilities import Capability
from fscs_backend.db import DatabaseConnection, DatabaseTransaction, get_connection, get_transaction
from fscs_backend.db.repos import AntragRepository, AttachmentRepository, TopRepository
from fscs_backend.files import LocalFileStore, validate_upload
from fscs_backend.logging_config import log_with_fields
from fscs_backend.services import ensure_can_modify_antrag
from fscs_backend.settings import Settings
from fscs_backend.web.routes.common import found, get_app_settings, get_file_store
from fscs_backend.web.schemas import AntragCreate, AntragOut, AntragUpdate, AttachmentOut, TopOut

router = APIRouter(prefix="/api/antraege", tags=["antraege"])
logger = logging.getLogger("fscs_backend.antraege")


async def _modifiable(
    request: Request,
    tx: DatabaseTransaction,
    antrag_id: uuid.UUID,
    identity: Identity,
    settings: Settings,
) -> None:
    await ensure_can_modify_antrag(
        tx,
        antrag_id=antrag_id,
        identity=identity,
        capabilities=get_capability_map(request),
        source_name=settings.oauth_source_name,
    )


@router.get("")
async def list_antraege(conn: DatabaseConnection = Depends(get_connection)) -> list[AntragOut]:
    return [AntragOut.build(details) for details in await AntragRepository(conn).list_all()]


@router.get("/orphans")
async def list_orphan_antraege(
    conn: DatabaseConnection = Depends(get_connection),
) -> list[AntragOut]:
    return [AntragOut.build(details) for details in await AntragRepository(conn).orphans()]


@router.post("", status_code=201, dependencies=[Depends(require_capability(Capability.create_antrag))])
async def create_antrag(
    payload: AntragCreate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AntragOut:
    details = await AntragRepository(tx).create(
        author_ids=payload.author_ids,
        title=payload.title,
        justification=payload.justification,
        body_text=payload.body_text,
    )
    await tx.commit()
    log_with_fields(logger, logging.INFO, "antrag created", antrag_id=details.antrag.id)
    return AntragOut.build(details)


@router.get("/{antrag_id}")
async def get_antrag(
    antrag_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> AntragOut:
    return AntragOut.build(found(await AntragRepository(conn).get_details(antrag_id), "Antrag"))


@router.get("/{antrag_id}/tops")
async def get_antrag_tops(
    antrag_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> list[TopOut]:
    found(await AntragRepository(conn).get(antrag_id), "Antrag")
    return [TopOut.model_validate(top) for top in await TopRepository(conn).by_antrag(antrag_id)]


@router.patch("/{antrag_id}")
async def update_antrag(
    request: Request,
    antrag_id: uuid.UUID,
    payload: AntragUpdate,
    identity: Identity = Depends(require_identity),
    settings: Settings = Depends(get_app_settings),
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AntragOut:
    await _modifiable(request, tx, antrag_id, identity, settings)
    details = await AntragRepository(tx).update(
        antrag_id,
        title=payload.title,
        justification=payload.justification,
        body_text=payload.body_text,
        author_ids=payload.author_ids,
    )
    details = found(details, "Antrag")
    await tx.commit()
    return AntragOut.build(details)


@router.delete("/{antrag_id}")
async def delete_antrag(
    request: Request,
    antrag_id: uuid.UUID,
    identity: Identity = Depends(require_identity),
    settings: Settings = Depends(get_app_settings),
    files: LocalFileStore = Depends(get_file_store),
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AntragOut:
    await _modifiable(request, tx, antrag_id, identity, settings)
    details = found(await AntragRepository(tx).get_details(antrag_id), "Antrag")
    attachments = AttachmentRepository(tx)
    for attachment_id in details.attachment_ids:
        await attachments.delete_by_id(attachment_id)
    await AntragRepository(tx).delete_by_id(antrag_id)
    await tx.commit()

    for attachment_id in details.attachment_ids:
        await files.delete(attachment_id)
    log_with_fields(logger, logging.INFO, "antrag deleted", antrag_id=antrag_id)
    return AntragOut.build(details)


@router.post("/{antrag_id}/attachments", status_code=201)
async def add_attachment(
    request: Request,
    antrag_id: uuid.UUID,
    file: UploadFile,
    identity: Identity = Depends(require_identity),
    settings: Settings = Depends(get_app_settings),
    files: LocalFileStore = Depends(get_file_store),
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AttachmentOut:
    data = await file.read()
    validate_upload(data, max_size=settings.max_file_size)
    await _modifiable(request, tx, antrag_id, identity, settings)

    attachments = AttachmentRepository(tx)
    attachment = await attachments.create(file.filename or "null")
    await attachments.link(antrag_id=antrag_id, attachment_id=attachment.id)
    await files.put(attachment.id, data)
    try:
        await tx.commit()
    except Exception:
        await files.delete(attachment.id)
        raise
    return AttachmentOut.build(attachment)


@router.get("/{antrag_id}/attachments/{attachment_id}", dependencies=[Depends(require_identity)])
async def get_attachment(
    antrag_id: uuid.UUID,
    attachment_id: uuid.UUID,
    files: LocalFileStore = Depends(get_file_store),
    conn: DatabaseConnection = Depends(get_connection),
) -> Response:
    attachment = found(
        await AttachmentRepository(conn).for_antrag(antrag_id, attachment_id), "Attachment"
    )
    data = await files.get(attachment.id)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(attachment.filename)}"},
    )


@router.delete("/{antrag_id}/attachments/{attachment_id}")
async def delete_attachment(
    request: Request,
    antrag_id: uuid.UUID,
    attachment_id: uuid.UUID,
    identity: Identity = Depends(require_identity),
    settings: Settings = Depends(get_app_settings),
    files: LocalFileStore = Depends(get_file_store),
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AttachmentOut:
    await _modifiable(request, tx, antrag_id, identity, settings)
    attachments = AttachmentRepository(tx)
    attachment = found(await attachments.for_antrag(antrag_id, attachment_id), "Attachment")
    await attachments.delete_by_id(attachment.id)
    await tx.commit()
    await files.delete(attachment.id)
    return AttachmentOut.build(attachment)
