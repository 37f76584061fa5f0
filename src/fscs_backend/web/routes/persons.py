from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, Query, Request

from fscs_backend.auth.guards import (
    get_capability_map,
    has_capability,
    require_capability,
    require_identity,
)
from fscs_backend.auth.identity import Identity
from fscs_backend.capabilities import Capability
from fscs_backend.db import DatabaseConnection, DatabaseTransaction, get_connection, get_transaction
from fscs_backend.db.models import Person
from fscs_backend.db.repos import AbmeldungRepository, PersonRepository, RoleAssignmentRepository
from fscs_backend.errors import UnauthorizedError
from fscs_backend.logging_config import log_with_fields
from fscs_backend.security.audit import audit_access_denied
from fscs_backend.services import person_for_identity
from fscs_backend.settings import Settings
from fscs_backend.web.routes.common import found, get_app_settings
from fscs_backend.web.schemas import (
    AbmeldungOut,
    DateRangeBody,
    PersonCreate,
    PersonOut,
    PersonPublicOut,
    PersonUpdate,
    RoleAssignmentBody,
    RoleAssignmentOut,
    RoleRevokeBody,
)

router = APIRouter(prefix="/api/persons", tags=["persons"])
logger = logging.getLogger("fscs_backend.persons")

_manage = [Depends(require_capability(Capability.manage_persons))]


def _person_view(request: Request, person: Person) -> PersonOut | PersonPublicOut:
    if has_capability(request, Capability.view_protected):
        return PersonOut.build(person)
    return PersonPublicOut.build(person)


async def _ensure_self_or_manager(
    request: Request,
    conn: DatabaseConnection,
    *,
    person_id: uuid.UUID,
    identity: Identity,
    settings: Settings,
) -> None:
    if get_capability_map(request).has_capability(identity.groups, Capability.manage_persons):
        return
    own = await person_for_identity(conn, identity=identity, source_name=settings.oauth_source_name)
    if own is not None and own.id == person_id:
        return
    audit_access_denied(
        event="abmeldung_modify",
        reason="not_self",
        actor=identity,
        person_id=person_id,
    )
    raise UnauthorizedError()


@router.get("")
async def list_persons(
    request: Request,
    conn: DatabaseConnection = Depends(get_connection),
) -> list[PersonOut | PersonPublicOut]:
    return [_person_view(request, person) for person in await PersonRepository(conn).list_all()]


@router.put("", status_code=201, dependencies=_manage)
async def create_person(
    payload: PersonCreate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> PersonOut:
    person = await PersonRepository(tx).create(
        first_name=payload.first_name,
        last_name=payload.last_name,
        user_name=payload.user_name,
        matrix_id=payload.matrix_id,
    )
    await tx.commit()
    log_with_fields(logger, logging.INFO, "person created", person_id=person.id)
    return PersonOut.build(person)


@router.get("/by-role")
async def list_persons_by_role(
    request: Request,
    role: str = Query(min_length=1),
    at: date | None = Query(default=None, alias="date"),
    conn: DatabaseConnection = Depends(get_connection),
) -> list[PersonOut | PersonPublicOut]:
    day = at if at is not None else datetime.now(UTC).date()
    persons = await PersonRepository(conn).with_role_at(role, day)
    return [_person_view(request, person) for person in persons]


@router.get("/by-username/{user_name}", dependencies=[Depends(require_identity)])
async def get_person_by_user_name(
    request: Request,
    user_name: str,
    conn: DatabaseConnection = Depends(get_connection),
) -> PersonOut | PersonPublicOut:
    person = found(await PersonRepository(conn).get_by_user_name(user_name), "Person")
    return _person_view(request, person)


@router.get("/by-matrix-id/{matrix_id}", dependencies=[Depends(require_identity)])
async def get_person_by_matrix_id(
    request: Request,
    matrix_id: str,
    conn: DatabaseConnection = Depends(get_connection),
) -> PersonOut | PersonPublicOut:
    person = found(await PersonRepository(conn).get_by_matrix_id(matrix_id), "Person")
    return _person_view(request, person)


@router.get("/{person_id}")
async def get_person(
    request: Request,
    person_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> PersonOut | PersonPublicOut:
    return _person_view(request, found(await PersonRepository(conn).get_by_id(person_id), "Person"))


@router.patch("/{person_id}", dependencies=_manage)
async def update_person(
    person_id: uuid.UUID,
    payload: PersonUpdate,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> PersonOut:
    person = found(await PersonRepository(tx).update(person_id, payload.model_dump()), "Person")
    await tx.commit()
    return PersonOut.build(person)


@router.delete("/{person_id}", dependencies=_manage)
async def delete_person(
    person_id: uuid.UUID,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> PersonOut:
    person = found(await PersonRepository(tx).delete_by_id(person_id), "Person")
    await tx.commit()
    log_with_fields(logger, logging.INFO, "person deleted", person_id=person_id)
    return PersonOut.build(person)


@router.get("/{person_id}/roles", dependencies=[Depends(require_identity)])
async def get_person_roles(
    person_id: uuid.UUID,
    at: date | None = Query(default=None, alias="date"),
    conn: DatabaseConnection = Depends(get_connection),
) -> list[RoleAssignmentOut]:
    found(await PersonRepository(conn).get_by_id(person_id), "Person")
    assignments = await RoleAssignmentRepository(conn).for_person(person_id, at=at)
    return [RoleAssignmentOut.build(a) for a in assignments]


@router.put("/{person_id}/roles", status_code=201, dependencies=_manage)
async def assign_role(
    person_id: uuid.UUID,
    payload: RoleAssignmentBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> RoleAssignmentOut:
    found(await PersonRepository(tx).get_by_id(person_id), "Person")
    assignment = await RoleAssignmentRepository(tx).assign(
        person_id=person_id,
        role=payload.role,
        start_date=payload.start,
        end_date=payload.end,
    )
    await tx.commit()
    return RoleAssignmentOut.build(assignment)


@router.delete("/{person_id}/roles", dependencies=_manage)
async def revoke_role(
    person_id: uuid.UUID,
    payload: RoleRevokeBody,
    tx: DatabaseTransaction = Depends(get_transaction),
) -> list[RoleAssignmentOut]:
    found(await PersonRepository(tx).get_by_id(person_id), "Person")
    revoked = await RoleAssignmentRepository(tx).revoke(person_id=person_id, role=payload.role)
    await tx.commit()
    return [RoleAssignmentOut.build(a) for a in revoked]


@router.get("/{person_id}/abmeldungen", dependencies=[Depends(require_identity)])
async def get_person_abmeldungen(
    person_id: uuid.UUID,
    conn: DatabaseConnection = Depends(get_connection),
) -> list[AbmeldungOut]:
    found(await PersonRepository(conn).get_by_id(person_id), "Person")
    return [AbmeldungOut.build(a) for a in await AbmeldungRepository(conn).for_person(person_id)]


@router.put("/{person_id}/abmeldungen", status_code=201)
async def create_abmeldung(
    request: Request,
    person_id: uuid.UUID,
    payload: DateRangeBody,
    identity: Identity = Depends(require_identity),
    settings: Settings = Depends(get_app_settings),
    tx: DatabaseTransaction = Depends(get_transaction),
) -> AbmeldungOut:
    found(await PersonRepository(tx).get_by_id(person_id), "Person")
    await _ensure_self_or_manager(
        request, tx, person_id=person_id, identity=identity, settings=settings
    )
    abmeldung = await AbmeldungRepository(tx).create(
        person_id=person_id, start_date=payload.start, end_date=payload.end
    )
    await tx.commit()
    return AbmeldungOut.build(abmeldung)


@router.delete("/{person_id}/abmeldungen")
async def revoke_abmeldung(
    request: Request,
    person_id: uuid.UUID,
    payload: DateRangeBody,
    identity: Identity = Depends(require_identity),
    settings: Settings = Depends(get_app_settings),
    tx: DatabaseTransaction = Depends(get_transaction),
) -> list[AbmeldungOut]:
    found(await PersonRepository(tx).get_by_id(person_id), "Person")
    await _ensure_self_or_manager(
        request, tx, person_id=person_id, identity=identity, settings=settings
    )
    remaining = await AbmeldungRepository(tx).revoke(
        person_id=person_id, start_date=payload.start, end_date=payload.end
    )
    await tx.commit()
    return [AbmeldungOut.build(a) for a in remaining]
