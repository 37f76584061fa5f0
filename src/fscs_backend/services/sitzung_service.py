from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime

from fscs_backend.db.models import Abmeldung, Person, Sitzung, Top, as_utc
from fscs_backend.db.repos import (
    AbmeldungRepository,
    AntragDetails,
    AntragRepository,
    SitzungRepository,
    TopRepository,
)
from fscs_backend.db.session import DatabaseConnection


@dataclass(frozen=True)
class TopWithAntraege:
    top: Top
    antraege: list[AntragDetails]


@dataclass(frozen=True)
class SitzungWithTops:
    sitzung: Sitzung
    tops: list[TopWithAntraege]


def sitzung_date(sitzung: Sitzung) -> date:
    return as_utc(sitzung.scheduled_at).date()


async def tops_with_antraege(conn: DatabaseConnection, sitzung_id: uuid.UUID) -> list[TopWithAntraege]:
    antraege = AntragRepository(conn)
    return [
        TopWithAntraege(top=top, antraege=await antraege.by_top(top.id))
        for top in await TopRepository(conn).for_sitzung(sitzung_id)
    ]


async def sitzung_with_tops(conn: DatabaseConnection, sitzung_id: uuid.UUID) -> SitzungWithTops | None:
    sitzung = await SitzungRepository(conn).get_by_id(sitzung_id)
    if sitzung is None:
        return None
    return SitzungWithTops(sitzung=sitzung, tops=await tops_with_antraege(conn, sitzung.id))


async def sitzungen_after_with_tops(
    conn: DatabaseConnection,
    timestamp: datetime,
    *,
    limit: int | None = None,
) -> list[SitzungWithTops]:
    sitzungen = await SitzungRepository(conn).after(timestamp, limit=limit)
    return [
        SitzungWithTops(sitzung=sitzung, tops=await tops_with_antraege(conn, sitzung.id))
        for sitzung in sitzungen
    ]


async def abmeldungen_for_sitzung(
    conn: DatabaseConnection, sitzung_id: uuid.UUID
) -> list[tuple[Abmeldung, Person]] | None:
    """Absences covering the day of the meeting, or ``None`` for an unknown meeting."""
    sitzung = await SitzungRepository(conn).get_by_id(sitzung_id)
    if sitzung is None:
        return None
    return await AbmeldungRepository(conn).at(sitzung_date(sitzung))
