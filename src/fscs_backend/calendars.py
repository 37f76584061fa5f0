from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time

import httpx
from icalendar import Calendar

from fscs_backend.cache import TimedCache
from fscs_backend.errors import NotFoundError, UpstreamError
from fscs_backend.logging_config import log_with_fields
from fscs_backend.settings import Settings

logger = logging.getLogger("fscs_backend.calendar")

Fetcher = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    location: str | None
    description: str | None
    start: datetime
    end: datetime


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
    # All-day events start at midnight.
    return datetime.combine(value, time.min, tzinfo=UTC)


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_events(raw: str, *, now: datetime) -> list[CalendarEvent]:
    """Parse an ICS document into events that have not ended yet, by start."""
    try:
        calendar = Calendar.from_ical(raw)
    except ValueError as exc:
        raise UpstreamError("calendar is not valid iCalendar", source="calendar") from exc

    events: list[CalendarEvent] = []
    for component in calendar.walk("VEVENT"):
        if component.get("DTSTART") is None:
            continue
        start = _as_datetime(component.decoded("DTSTART"))
        end = _as_datetime(component.decoded("DTEND")) if component.get("DTEND") is not None else start
        if end <= now:
            continue
        events.append(
            CalendarEvent(
                summary=str(component.get("SUMMARY", "")),
                location=_optional_text(component.get("LOCATION")),
                description=_optional_text(component.get("DESCRIPTION")),
                start=start,
                end=end,
            )
        )

    events.sort(key=lambda event: event.start)
    return events


def http_fetcher(timeout_seconds: float) -> Fetcher:
    async def fetch(url: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as exc:
            raise UpstreamError(f"calendar fetch failed: {url}", source="calendar") from exc

    return fetch


class CalendarService:
    """Named calendars, each behind its own timed cache."""

    def __init__(
        self,
        calendars: Mapping[str, str],
        *,
        ttl_seconds: float,
        fetcher: Fetcher,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._now = now
        self._fetcher = fetcher
        self._caches: dict[str, TimedCache[list[CalendarEvent]]] = {
            name: TimedCache(self._producer(name, url), ttl_seconds)
            for name, url in calendars.items()
        }

    def _producer(self, name: str, url: str) -> Callable[[], Awaitable[list[CalendarEvent]]]:
        async def produce() -> list[CalendarEvent]:
            log_with_fields(logger, logging.INFO, "refreshing calendar", calendar=name)
            try:
                raw = await self._fetcher(url)
                return parse_events(raw, now=self._now())
            except UpstreamError:
                log_with_fields(
                    logger, logging.ERROR, "calendar refresh failed", calendar=name, exc_info=True
                )
                raise

        return produce

    def names(self) -> list[str]:
        return sorted(self._caches)

    async def events(self, name: str) -> list[CalendarEvent]:
        cache = self._caches.get(name)
        if cache is None:
            raise NotFoundError("Unknown calendar")
        return await cache.get()

    async def all_events(self) -> dict[str, list[CalendarEvent]]:
        return {name: await self.events(name) for name in self.names()}


def build_calendar_service(settings: Settings) -> CalendarService:
    return CalendarService(
        settings.calendars,
        ttl_seconds=settings.calendar_ttl_seconds,
        fetcher=http_fetcher(settings.calendar_timeout_seconds),
    )
