from __future__ import annotations

import uuid
from typing import Any

from fscs_backend.calendars import CalendarService
from fscs_backend.db.models import Person
from fscs_backend.db.repos import PersonRepository, TemplateRepository
from fscs_backend.db.session import DatabaseConnection
from fscs_backend.errors import NotFoundError
from fscs_backend.rendering import render_template
from fscs_backend.services.sitzung_service import sitzung_with_tops


def _person_entry(person: Person, *, include_private: bool) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": str(person.id), "name": person.name}
    if include_private:
        entry.update(
            first_name=person.first_name,
            last_name=person.last_name,
            user_name=person.user_name,
            matrix_id=person.matrix_id,
        )
    return entry


async def render_sitzung_document(
    conn: DatabaseConnection,
    *,
    sitzung_id: uuid.UUID,
    template_name: str,
    calendars: CalendarService,
    include_private: bool = False,
) -> str:
    """Render a stored template for one meeting.

    Person entries carry the private name fields only when ``include_private``
    is set.
    """
    template = await TemplateRepository(conn).get_by_name(template_name)
    if template is None:
        raise NotFoundError("Template not found")

    sitzung = await sitzung_with_tops(conn, sitzung_id)
    if sitzung is None:
        raise NotFoundError("Sitzung not found")

    context: dict[str, Any] = {
        "sitzung": {
            "id": str(sitzung.sitzung.id),
            "datetime": sitzung.sitzung.scheduled_at,
            "location": sitzung.sitzung.location,
            "kind": sitzung.sitzung.kind.value,
            "antragsfrist": sitzung.sitzung.antragsfrist,
            "tops": [
                {
                    "id": str(entry.top.id),
                    "name": entry.top.name,
                    "weight": entry.top.weight,
                    "kind": entry.top.kind.value,
                    "content": entry.top.content,
                    "antraege": [
                        {
                            "id": str(details.antrag.id),
                            "titel": details.antrag.title,
                            "antragstext": details.antrag.body_text,
                            "begruendung": details.antrag.justification,
                        }
                        for details in entry.antraege
                    ],
                }
                for entry in sitzung.tops
            ],
        },
        "persons": [
            _person_entry(person, include_private=include_private)
            for person in await PersonRepository(conn).list_all()
        ],
        "calendars": {
            name: [
                {
                    "summary": event.summary,
                    "location": event.location,
                    "description": event.description,
                    "start": event.start,
                    "end": event.end,
                }
                for event in events
            ]
            for name, events in (await calendars.all_events()).items()
        },
    }
    return render_template(template.content, context)
