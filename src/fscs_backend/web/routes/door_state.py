from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from fscs_backend.auth.guards import require_capability
from fscs_backend.capabilities import Capability
from fscs_backend.db import DatabaseConnection, DatabaseTransaction, get_connection, get_transaction
from fscs_backend.db.repos import DoorStateRepository
from fscs_backend.web.routes.common import found, validate_range
from fscs_backend.web.schemas import DoorStateCreate, DoorStateOut

router = APIRouter(prefix="/api/doorstate", tags=["doorstate"])


@router.get("")
async def get_door_state(conn: DatabaseConnection = Depends(get_connection)) -> DoorStateOut:
    state = found(await DoorStateRepository(conn).at(datetime.now(UTC)), "Door state")
    return DoorStateOut.build(state)


@router.get("/between")
async def list_door_states(
    start: datetime,
    end: datetime,
    conn: DatabaseConnection = Depends(get_connection),
) -> list[DoorStateOut]:
    validate_range(start, end)
    return [DoorStateOut.build(s) for s in await DoorStateRepository(conn).between(start, end)]


@router.post(
    "",
    status_code=201,
    dependencies=[Depends(require_capability(Capability.manage_door))],
)
async def record_door_state(
    payload: DoorStateCreate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> DoorStateOut:
    time = payload.time if payload.time is not None else datetime.now(UTC)
    state = await DoorStateRepository(tx).record(time=time, is_open=payload.is_open)
    await tx.commit()
    return DoorStateOut.build(state)
