from __future__ import annotations

import uuid

from fscs_backend.auth.identity import Identity, person_user_name
from fscs_backend.capabilities import Capability, CapabilityMap
from fscs_backend.db.repos import AntragDetails, AntragRepository, PersonRepository
from fscs_backend.db.session import DatabaseConnection
from fscs_backend.errors import NotFoundError, UnauthorizedError
from fscs_backend.security.audit import audit_access_denied


async def ensure_can_modify_antrag(
    conn: DatabaseConnection,
    *,
    antrag_id: uuid.UUID,
    identity: Identity,
    capabilities: CapabilityMap,
    source_name: str,
) -> AntragDetails:
    """Load a motion the caller may change.

    Authors may change their own motions; everyone else needs
    ``manage_antraege``. Run it inside the transaction that performs the
    change so the authorship it checks is the one being modified.
    """
    antraege = AntragRepository(conn)
    details = await antraege.get_details(antrag_id)
    if details is None:
        raise NotFoundError("Antrag not found")

    if capabilities.has_capability(identity.groups, Capability.manage_antraege):
        return details

    person = await PersonRepository(conn).get_by_user_name(person_user_name(source_name, identity.sub))
    if person is not None and person.id in details.author_ids:
        return details

    audit_access_denied(
        event="antrag_modify",
        reason="not_author",
        actor=identity,
        antrag_id=antrag_id,
    )
    raise UnauthorizedError()
