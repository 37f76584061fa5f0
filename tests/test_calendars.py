from __future__ import annotations

from datetime import UTC, datetime

import pytest

from fscs_backend.calendars import CalendarService, parse_events
from fscs_backend.errors import NotFoundError, UpstreamError

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//fscs//test//EN
BEGIN:VEVENT
UID:later@test
SUMMARY:Sommerfest
LOCATION:Wiese
DTSTART:20240610T160000Z
DTEND:20240610T220000Z
END:VEVENT
BEGIN:VEVENT
UID:past@test
SUMMARY:Vergangen
DTSTART:20240401T100000Z
DTEND:20240401T120000Z
END:VEVENT
BEGIN:VEVENT
UID:allday@test
SUMMARY:Ersti-Tag
DTSTART;VALUE=DATE:20240502
DTEND;VALUE=DATE:20240503
END:VEVENT
END:VCALENDAR
""".replace("\n", "\r\n")


def test_parse_events_drops_past_events_and_sorts_by_start() -> None:
    events = parse_events(ICS, now=NOW)

    assert [e.summary for e in events] == ["Ersti-Tag", "Sommerfest"]
    assert events[0].start == datetime(2024, 5, 2, tzinfo=UTC)
    assert events[0].location is None
    assert events[1].location == "Wiese"


def test_parse_events_rejects_garbage() -> None:
    with pytest.raises(UpstreamError):
        parse_events("not a calendar", now=NOW)


@pytest.mark.asyncio
async def test_service_caches_per_calendar() -> None:
    fetched: list[str] = []

    async def fetch(url: str) -> str:
        fetched.append(url)
        return ICS

    service = CalendarService(
        {"fsr": "https://cal.example/fsr.ics"}, ttl_seconds=60, fetcher=fetch, now=lambda: NOW
    )

    assert service.names() == ["fsr"]
    first = await service.events("fsr")
    second = await service.events("fsr")

    assert first == second
    assert fetched == ["https://cal.example/fsr.ics"]
    with pytest.raises(NotFoundError):
        await service.events("unknown")


@pytest.mark.asyncio
async def test_fetch_failures_surface_as_upstream_errors() -> None:
    async def fetch(url: str) -> str:
        raise UpstreamError("down", source="calendar")

    service = CalendarService({"fsr": "https://cal.example"}, ttl_seconds=60, fetcher=fetch)

    with pytest.raises(UpstreamError):
        await service.events("fsr")
