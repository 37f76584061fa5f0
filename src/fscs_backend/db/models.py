from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    pass


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class UtcDateTime(TypeDecorator[datetime]):
    """Timezone-aware timestamp stored as UTC.

    SQLite drops offsets, so values are normalized before binding and tagged
    with UTC when loaded. PostgreSQL gets the same values as ``timestamptz``.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)


class SitzungKind(enum.StrEnum):
    normal = "normal"
    vv = "vv"
    wahlvv = "wahlvv"
    ersatz = "ersatz"
    konsti = "konsti"
    dringlichkeit = "dringlichkeit"


class TopKind(enum.StrEnum):
    regularia = "regularia"
    bericht = "bericht"
    normal = "normal"
    verschiedenes = "verschiedenes"


# Agenda sections in the order they appear in a meeting.
TOP_KIND_ORDER: tuple[TopKind, ...] = (
    TopKind.regularia,
    TopKind.bericht,
    TopKind.normal,
    TopKind.verschiedenes,
)


def _now() -> datetime:
    return datetime.now(UTC)


class Person(Base):
    __tablename__ = "person"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(200))
    last_name: Mapped[str] = mapped_column(String(200))
    user_name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    matrix_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Role(Base):
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)


class RoleAssignment(Base):
    __tablename__ = "rolemapping"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    person_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("person.id", ondelete="CASCADE"), index=True
    )
    role: Mapped[str] = mapped_column(ForeignKey("roles.name", ondelete="CASCADE"), index=True)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)


class Abmeldung(Base):
    __tablename__ = "abmeldungen"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    person_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("person.id", ondelete="CASCADE"), index=True
    )
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)


class LegislativePeriod(Base):
    __tablename__ = "legislative_period"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200))


class Sitzung(Base):
    __tablename__ = "sitzungen"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Stored as "datetime"; named differently here so it does not shadow the type.
    scheduled_at: Mapped[datetime] = mapped_column("datetime", UtcDateTime(), index=True)
    location: Mapped[str] = mapped_column(String(200))
    kind: Mapped[SitzungKind] = mapped_column(
        Enum(SitzungKind, name="sitzungkind"), default=SitzungKind.normal
    )
    antragsfrist: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
    legislative_period_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("legislative_period.id", ondelete="SET NULL"), nullable=True, index=True
    )


class Top(Base):
    __tablename__ = "tops"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sitzung_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sitzungen.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(500))
    weight: Mapped[int] = mapped_column(Integer)
    content: Mapped[str] = mapped_column(Text, default="")
    kind: Mapped[TopKind] = mapped_column(Enum(TopKind, name="topkind"), default=TopKind.normal)


class Antrag(Base):
    __tablename__ = "antraege"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500))
    body_text: Mapped[str] = mapped_column(Text, default="")
    justification: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=_now)


class AntragAuthor(Base):
    __tablename__ = "antragsstellende"

    antrag_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("antraege.id", ondelete="CASCADE"), primary_key=True
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("person.id", ondelete="CASCADE"), primary_key=True
    )


class AntragTop(Base):
    __tablename__ = "antragstop"

    antrag_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("antraege.id", ondelete="CASCADE"), primary_key=True
    )
    top_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tops.id", ondelete="CASCADE"), primary_key=True
    )


class Attachment(Base):
    __tablename__ = "attachments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    filename: Mapped[str] = mapped_column(String(500))


class AntragAttachment(Base):
    __tablename__ = "attachment_mapping"

    attachment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("attachments.id", ondelete="CASCADE"), primary_key=True
    )
    antrag_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("antraege.id", ondelete="CASCADE"), primary_key=True
    )


class DoorState(Base):
    __tablename__ = "doorstate"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    time: Mapped[datetime] = mapped_column(UtcDateTime(), index=True)
    is_open: Mapped[bool] = mapped_column(Boolean)


class Template(Base):
    __tablename__ = "templates"

    name: Mapped[str] = mapped_column(String(200), primary_key=True)
    content: Mapped[str] = mapped_column(Text, default="")
