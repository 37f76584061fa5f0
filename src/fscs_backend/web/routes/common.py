from __future__ import annotations

from datetime import date, datetime
from typing import TypeVar

from fastapi import Request

from fscs_backend.calendars import CalendarService
from fscs_backend.db.models import as_utc
from fscs_backend.errors import NotFoundError, ValidationError
from fscs_backend.files import LocalFileStore
from fscs_backend.settings import Settings

T = TypeVar("T")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_calendar_service(request: Request) -> CalendarService:
    return request.app.state.calendars


def get_file_store(request: Request) -> LocalFileStore:
    return request.app.state.file_store


def validate_range(start: date | datetime, end: date | datetime) -> None:
    # Naive query timestamps are read as UTC, like stored ones.
    if isinstance(start, datetime) and isinstance(end, datetime):
        start, end = as_utc(start), as_utc(end)
    if start > end:  # type: ignore[operator]
        raise ValidationError("start must not be after end")


def found(value: T | None, what: str) -> T:
    if value is None:
        raise NotFoundError(f"{what} not found")
    return value
