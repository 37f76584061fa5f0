from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends

from fscs_backend.auth.guards import require_capability
from fscs_backend.capabilities import Capability
from fscs_backend.db import DatabaseConnection, DatabaseTransaction, get_connection, get_transaction
from fscs_backend.db.repos import LegislativePeriodRepository
from fscs_backend.logging_config import log_with_fields
from fscs_backend.web.routes.common import found
from fscs_backend.web.schemas import LegislativePeriodBody, LegislativePeriodOut, SitzungOut

router = APIRouter(prefix="/api/legislative-periods", tags=["legislative-periods"])
logger = logging.getLogger("fscs_backend.legislative_periods")

_manage = [Depends(require_capability(Capability.manage_sitzungen))]


@router.get("")
async def list_periods(conn: DatabaseConnection = Depends(get_connection)) -> list[LegislativePeriodOut]:
    return [LegislativePeriodOut.build(p) for p in await LegislativePeriodRepository(conn).list_all()]


@router.post("", status_code=201, dependencies=_manage)
async def create_period(
    payload: LegislativePeriodBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> LegislativePeriodOut:
    period = await LegislativePeriodRepository(tx).create(payload.name)
    await tx.commit()
    log_with_fields(logger, logging.INFO, "legislative period created", period_id=period.id)
    return LegislativePeriodOut.build(period)


@router.get("/{period_id}")
async def get_period(
    period_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> LegislativePeriodOut:
    period = found(await LegislativePeriodRepository(conn).get(period_id), "Legislative period")
    return LegislativePeriodOut.build(period)


@router.patch("/{period_id}", dependencies=_manage)
async def rename_period(
    period_id: uuid.UUID,
    payload: LegislativePeriodBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> LegislativePeriodOut:
    period = found(
        await LegislativePeriodRepository(tx).rename(period_id, payload.name), "Legislative period"
    )
    await tx.commit()
    return LegislativePeriodOut.build(period)


@router.delete("/{period_id}", dependencies=_manage)
async def delete_period(
    period_id: uuid.UUID,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> LegislativePeriodOut:
    period = found(
        await LegislativePeriodRepository(tx).delete_by_id(period_id), "Legislative period"
    )
    await tx.commit()
    return LegislativePeriodOut.build(period)


@router.get("/{period_id}/sitzungen")
async def get_period_sitzungen(
    period_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> list[SitzungOut]:
    periods = LegislativePeriodRepository(conn)
    found(await periods.get(period_id), "Legislative period")
    return [SitzungOut.build(s) for s in await periods.sitzungen(period_id)]
