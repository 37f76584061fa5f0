from __future__ import annotations

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from fscs_backend.auth.guards import has_capability, require_capability
from fscs_backend.calendars import CalendarService
from fscs_backend.capabilities import Capability
from fscs_backend.db import DatabaseConnection, DatabaseTransaction, get_connection, get_transaction
from fscs_backend.db.repos import (
    AntragRepository,
    AntragTopRepository,
    SitzungRepository,
    TopRepository,
)
from fscs_backend.errors import NotFoundError
from fscs_backend.logging_config import log_with_fields
from fscs_backend.services import (
    abmeldungen_for_sitzung,
    render_sitzung_document,
    sitzung_with_tops,
    sitzungen_after_with_tops,
    tops_with_antraege,
)
from fscs_backend.web.routes.common import found, get_calendar_service, validate_range
from fscs_backend.web.schemas import (
    AbmeldungWithPersonOut,
    AssocBody,
    AssocOut,
    SitzungCreate,
    SitzungOut,
    SitzungUpdate,
    SitzungWithTopsOut,
    TopCreate,
    TopOut,
    TopUpdate,
    TopWithAntraegeOut,
)

router = APIRouter(prefix="/api/sitzungen", tags=["sitzungen"])
logger = logging.getLogger("fscs_backend.sitzungen")

_manage = [Depends(require_capability(Capability.manage_sitzungen))]


def _window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    validate_range(start, end)
    return start, end


async def _top_in_sitzung(conn: DatabaseConnection, sitzung_id: uuid.UUID, top_id: uuid.UUID) -> None:
    top = await TopRepository(conn).get_by_id(top_id)
    if top is None or top.sitzung_id != sitzung_id:
        raise NotFoundError("Top not found")


@router.get("")
async def list_sitzungen(conn: DatabaseConnection = Depends(get_connection)) -> list[SitzungOut]:
    return [SitzungOut.build(s) for s in await SitzungRepository(conn).list_all()]


@router.post("", status_code=201, dependencies=_manage)
async def create_sitzung(
    payload: SitzungCreate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> SitzungOut:
    sitzung = await SitzungRepository(tx).create(
        scheduled_at=payload.datetime,
        location=payload.location,
        kind=payload.kind,
        antragsfrist=payload.antragsfrist,
        legislative_period_id=payload.legislative_period_id,
    )
    await tx.commit()
    log_with_fields(logger, logging.INFO, "sitzung created", sitzung_id=sitzung.id)
    return SitzungOut.build(sitzung)


@router.get("/after")
async def list_sitzungen_after(
    timestamp: datetime,
    limit: int | None = Query(default=None, ge=1),
    conn: DatabaseConnection = Depends(get_connection),
) -> list[SitzungWithTopsOut]:
    entries = await sitzungen_after_with_tops(conn, timestamp, limit=limit)
    return [SitzungWithTopsOut.build_full(entry) for entry in entries]


@router.get("/between")
async def list_sitzungen_between(
    window: tuple[datetime, datetime] = Depends(_window),
    conn: DatabaseConnection = Depends(get_connection),
) -> list[SitzungOut]:
    start, end = window
    return [SitzungOut.build(s) for s in await SitzungRepository(conn).between(start, end)]


@router.get("/{sitzung_id}")
async def get_sitzung(
    sitzung_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> SitzungWithTopsOut:
    entry = found(await sitzung_with_tops(conn, sitzung_id), "Sitzung")
    return SitzungWithTopsOut.build_full(entry)


@router.patch("/{sitzung_id}", dependencies=_manage)
async def update_sitzung(
    sitzung_id: uuid.UUID,
    payload: SitzungUpdate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> SitzungOut:
    sitzung = found(await SitzungRepository(tx).update(sitzung_id, payload.changes()), "Sitzung")
    await tx.commit()
    return SitzungOut.build(sitzung)


@router.delete("/{sitzung_id}", dependencies=_manage)
async def delete_sitzung(
    sitzung_id: uuid.UUID,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> SitzungOut:
    sitzung = found(await SitzungRepository(tx).delete_by_id(sitzung_id), "Sitzung")
    await tx.commit()
    log_with_fields(logger, logging.INFO, "sitzung deleted", sitzung_id=sitzung_id)
    return SitzungOut.build(sitzung)


@router.get("/{sitzung_id}/abmeldungen")
async def get_sitzung_abmeldungen(
    sitzung_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> list[AbmeldungWithPersonOut]:
    entries = found(await abmeldungen_for_sitzung(conn, sitzung_id), "Sitzung")
    return [AbmeldungWithPersonOut.build_with_person(a, p) for a, p in entries]


@router.get("/{sitzung_id}/tops")
async def get_tops(
    sitzung_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> list[TopWithAntraegeOut]:
    found(await SitzungRepository(conn).get_by_id(sitzung_id), "Sitzung")
    return [TopWithAntraegeOut.build(entry) for entry in await tops_with_antraege(conn, sitzung_id)]


@router.post("/{sitzung_id}/tops", status_code=201, dependencies=_manage)
async def create_top(
    sitzung_id: uuid.UUID,
    payload: TopCreate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> TopOut:
    top = await TopRepository(tx).append(
        sitzung_id=sitzung_id,
        name=payload.name,
        content=payload.content,
        kind=payload.kind,
    )
    top = found(top, "Sitzung")
    await tx.commit()
    return TopOut.model_validate(top)


@router.patch("/{sitzung_id}/tops/{top_id}", dependencies=_manage)
async def update_top(
    sitzung_id: uuid.UUID,
    top_id: uuid.UUID,
    payload: TopUpdate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> TopOut:
    await _top_in_sitzung(tx, sitzung_id, top_id)
    top = found(await TopRepository(tx).update(top_id, payload.model_dump()), "Top")
    await tx.commit()
    return TopOut.model_validate(top)


@router.delete("/{sitzung_id}/tops/{top_id}", dependencies=_manage)
async def delete_top(
    sitzung_id: uuid.UUID,
    top_id: uuid.UUID,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> TopOut:
    await _top_in_sitzung(tx, sitzung_id, top_id)
    top = found(await TopRepository(tx).delete_by_id(top_id), "Top")
    await tx.commit()
    return TopOut.model_validate(top)


@router.patch("/{sitzung_id}/tops/{top_id}/assoc", dependencies=_manage)
async def attach_antrag(
    sitzung_id: uuid.UUID,
    top_id: uuid.UUID,
    payload: AssocBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AssocOut | None:
    await _top_in_sitzung(tx, sitzung_id, top_id)
    found(await AntragRepository(tx).get(payload.antrag_id), "Antrag")
    assoc = await AntragTopRepository(tx).attach(antrag_id=payload.antrag_id, top_id=top_id)
    await tx.commit()
    return AssocOut.build(assoc)


@router.delete("/{sitzung_id}/tops/{top_id}/assoc", dependencies=_manage)
async def detach_antrag(
    sitzung_id: uuid.UUID,
    top_id: uuid.UUID,
    payload: AssocBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AssocOut | None:
    await _top_in_sitzung(tx, sitzung_id, top_id)
    assoc = await AntragTopRepository(tx).detach(antrag_id=payload.antrag_id, top_id=top_id)
    await tx.commit()
    return AssocOut.build(assoc)


@router.get("/{sitzung_id}/template/{name}", response_class=PlainTextResponse)
async def render_template_for_sitzung(
    request: Request,
    sitzung_id: uuid.UUID,
    name: str,
    calendars: CalendarService = Depends(get_calendar_service),
    conn: DatabaseConnection = Depends(get_connection),
) -> str:
    return await render_sitzung_document(
        conn,
        sitzung_id=sitzung_id,
        template_name=name,
        calendars=calendars,
        include_private=has_capability(request, Capability.view_protected),
    )
