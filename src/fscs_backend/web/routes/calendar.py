from __future__ import annotations

from fastapi import APIRouter, Depends

from fscs_backend.calendars import CalendarService
from fscs_backend.web.routes.common import get_calendar_service
from fscs_backend.web.schemas import CalendarEventOut

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("")
async def list_calendars(
    calendars: CalendarService = Depends(get_calendar_service),
) -> list[str]:
    return calendars.names()


@router.get("/{name}")
async def get_calendar_events(
    name: str,
    calendars: CalendarService = Depends(get_calendar_service),
) -> list[CalendarEventOut]:
    return [CalendarEventOut.build(event) for event in await calendars.events(name)]
