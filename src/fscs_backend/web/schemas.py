"""Request and response bodies for the JSON API."""

from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fscs_backend.calendars import CalendarEvent
from fscs_backend.db.models import (
    Abmeldung,
    AntragTop,
    Attachment,
    DoorState,
    LegislativePeriod,
    Person,
    RoleAssignment,
    Sitzung,
    SitzungKind,
    Template,
    Top,
    TopKind,
)
from fscs_backend.db.repos import AntragDetails
from fscs_backend.services import SitzungWithTops, TopWithAntraege


class _Body(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def _check_range(start: object, end: object) -> None:
    if start is not None and end is not None and start > end:  # type: ignore[operator]
        raise ValueError("start must not be after end")


# Sitzungen


class SitzungCreate(_Body):
    datetime: dt.datetime
    location: str = Field(min_length=1)
    kind: SitzungKind = SitzungKind.normal
    antragsfrist: dt.datetime | None = None
    legislative_period_id: uuid.UUID | None = None


class SitzungUpdate(_Body):
    datetime: dt.datetime | None = None
    location: str | None = Field(default=None, min_length=1)
    kind: SitzungKind | None = None
    antragsfrist: dt.datetime | None = None
    legislative_period_id: uuid.UUID | None = None

    def changes(self) -> dict[str, object]:
        return {
            "scheduled_at": self.datetime,
            "location": self.location,
            "kind": self.kind,
            "antragsfrist": self.antragsfrist,
            "legislative_period_id": self.legislative_period_id,
        }


class SitzungOut(BaseModel):
    id: uuid.UUID
    datetime: dt.datetime
    location: str
    kind: SitzungKind
    antragsfrist: dt.datetime | None
    legislative_period_id: uuid.UUID | None

    @classmethod
    def build(cls, sitzung: Sitzung) -> SitzungOut:
        return cls(
            id=sitzung.id,
            datetime=sitzung.scheduled_at,
            location=sitzung.location,
            kind=sitzung.kind,
            antragsfrist=sitzung.antragsfrist,
            legislative_period_id=sitzung.legislative_period_id,
        )


# Tops


class TopCreate(_Body):
    name: str = Field(min_length=1)
    content: str = ""
    kind: TopKind = TopKind.normal


class TopUpdate(_Body):
    name: str | None = Field(default=None, min_length=1)
    content: str | None = None
    kind: TopKind | None = None
    weight: int | None = None


class TopOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    sitzung_id: uuid.UUID
    name: str
    weight: int
    content: str
    kind: TopKind


class AssocBody(_Body):
    antrag_id: uuid.UUID


class AssocOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    antrag_id: uuid.UUID
    top_id: uuid.UUID

    @classmethod
    def build(cls, assoc: AntragTop | None) -> AssocOut | None:
        if assoc is None:
            return None
        return cls.model_validate(assoc)


# Anträge


class AntragCreate(_Body):
    title: str = Field(min_length=1)
    body_text: str = ""
    justification: str = ""
    author_ids: list[uuid.UUID] = Field(default_factory=list)


class AntragUpdate(_Body):
    title: str | None = Field(default=None, min_length=1)
    body_text: str | None = None
    justification: str | None = None
    author_ids: list[uuid.UUID] | None = None


class AntragOut(BaseModel):
    id: uuid.UUID
    title: str
    body_text: str
    justification: str
    created_at: dt.datetime
    author_ids: list[uuid.UUID]
    attachment_ids: list[uuid.UUID]

    @classmethod
    def build(cls, details: AntragDetails) -> AntragOut:
        antrag = details.antrag
        return cls(
            id=antrag.id,
            title=antrag.title,
            body_text=antrag.body_text,
            justification=antrag.justification,
            created_at=antrag.created_at,
            author_ids=list(details.author_ids),
            attachment_ids=list(details.attachment_ids),
        )


class AttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    filename: str

    @classmethod
    def build(cls, attachment: Attachment) -> AttachmentOut:
        return cls.model_validate(attachment)


# Composite agenda views


class TopWithAntraegeOut(TopOut):
    antraege: list[AntragOut]

    @classmethod
    def build(cls, entry: TopWithAntraege) -> TopWithAntraegeOut:
        return cls(
            **TopOut.model_validate(entry.top).model_dump(),
            antraege=[AntragOut.build(details) for details in entry.antraege],
        )


class SitzungWithTopsOut(SitzungOut):
    tops: list[TopWithAntraegeOut]

    @classmethod
    def build_full(cls, entry: SitzungWithTops) -> SitzungWithTopsOut:
        return cls(
            **SitzungOut.build(entry.sitzung).model_dump(),
            tops=[TopWithAntraegeOut.build(top) for top in entry.tops],
        )


# Persons, roles, Abmeldungen


class PersonCreate(_Body):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    user_name: str = Field(min_length=1)
    matrix_id: str | None = None


class PersonUpdate(_Body):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    user_name: str | None = Field(default=None, min_length=1)
    matrix_id: str | None = None


class PersonPublicOut(BaseModel):
    id: uuid.UUID
    name: str

    @classmethod
    def build(cls, person: Person) -> PersonPublicOut:
        return cls(id=person.id, name=person.name)


class PersonOut(PersonPublicOut):
    first_name: str
    last_name: str
    user_name: str
    matrix_id: str | None

    @classmethod
    def build(cls, person: Person) -> PersonOut:
        return cls(
            id=person.id,
            name=person.name,
            first_name=person.first_name,
            last_name=person.last_name,
            user_name=person.user_name,
            matrix_id=person.matrix_id,
        )


class RoleBody(_Body):
    name: str = Field(min_length=1)


class RoleAssignmentBody(_Body):
    role: str = Field(min_length=1)
    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def _ordered(self) -> RoleAssignmentBody:
        _check_range(self.start, self.end)
        return self


class RoleRevokeBody(_Body):
    role: str = Field(min_length=1)


class RoleAssignmentOut(BaseModel):
    id: uuid.UUID
    person_id: uuid.UUID
    role: str
    start: dt.date
    end: dt.date

    @classmethod
    def build(cls, assignment: RoleAssignment) -> RoleAssignmentOut:
        return cls(
            id=assignment.id,
            person_id=assignment.person_id,
            role=assignment.role,
            start=assignment.start_date,
            end=assignment.end_date,
        )


class DateRangeBody(_Body):
    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def _ordered(self) -> DateRangeBody:
        _check_range(self.start, self.end)
        return self


class AbmeldungOut(BaseModel):
    id: uuid.UUID
    person_id: uuid.UUID
    start: dt.date
    end: dt.date

    @classmethod
    def build(cls, abmeldung: Abmeldung) -> AbmeldungOut:
        return cls(
            id=abmeldung.id,
            person_id=abmeldung.person_id,
            start=abmeldung.start_date,
            end=abmeldung.end_date,
        )


class AbmeldungWithPersonOut(AbmeldungOut):
    person: PersonPublicOut

    @classmethod
    def build_with_person(cls, abmeldung: Abmeldung, person: Person) -> AbmeldungWithPersonOut:
        return cls(
            **AbmeldungOut.build(abmeldung).model_dump(),
            person=PersonPublicOut.build(person),
        )


# Legislative periods


class LegislativePeriodBody(_Body):
    name: str = Field(min_length=1)


class LegislativePeriodOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str

    @classmethod
    def build(cls, period: LegislativePeriod) -> LegislativePeriodOut:
        return cls.model_validate(period)


# Door state


class DoorStateCreate(_Body):
    time: dt.datetime | None = None
    is_open: bool


class DoorStateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: dt.datetime
    is_open: bool

    @classmethod
    def build(cls, state: DoorState) -> DoorStateOut:
        return cls.model_validate(state)


# Templates


class TemplateCreate(_Body):
    name: str = Field(min_length=1)
    content: str


class TemplateUpdate(_Body):
    content: str


class TemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    content: str

    @classmethod
    def build(cls, template: Template) -> TemplateOut:
        return cls.model_validate(template)


# Calendar


class CalendarEventOut(BaseModel):
    summary: str
    location: str | None
    description: str | None
    start: dt.datetime
    end: dt.datetime

    @classmethod
    def build(cls, event: CalendarEvent) -> CalendarEventOut:
        return cls(
            summary=event.summary,
            location=event.location,
            description=event.description,
            start=event.start,
            end=event.end,
        )


# Auth


class MeOut(BaseModel):
    sub: str
    name: str
    preferred_username: str
    groups: list[str]
    capabilities: list[str]
