"""
Calendar provider capability consumed by the engines.

    query_free_busy(hosts, time_min, time_max) -> {host_id: [BusyInterval]}
    create_event(host, EventRequest) -> CreatedEvent

Both raise CalendarProviderError on failure.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Protocol

import httpx
from dateutil import parser

from .config import GOOGLE_CALENDAR_API_URL, CALENDAR_HTTP_TIMEOUT
from .domain import BusyInterval, CreatedEvent, EventRequest, Host, overlaps, to_utc
from .errors import CalendarProviderError


class CalendarProvider(Protocol):
    async def query_free_busy(
        self, hosts: list[Host], time_min: datetime, time_max: datetime
    ) -> dict[str, list[BusyInterval]]:
        ...

    async def create_event(self, host: Host, event: EventRequest) -> CreatedEvent:
        ...


def _iso(dt: datetime) -> str:
    return to_utc(dt).isoformat().replace("+00:00", "Z")


def _check_response(resp: httpx.Response, what: str):
    if resp.status_code < 400:
        return
    transient = resp.status_code == 429 or resp.status_code >= 500
    raise CalendarProviderError(
        f"{what} failed with HTTP {resp.status_code}: {resp.text[:200]}",
        transient=transient,
    )


class GoogleCalendarProvider:
    """Google Calendar v3 over REST; each host is queried with its own bearer token."""

    def __init__(
        self,
        base_url: str = GOOGLE_CALENDAR_API_URL,
        timeout: float = CALENDAR_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _headers(host: Host) -> dict:
        return {"Authorization": f"Bearer {host.credential}"}

    async def _request(self, client: httpx.AsyncClient, what: str, method: str, url: str, **kwargs) -> dict:
        try:
            resp = await client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            raise CalendarProviderError(f"{what} timed out", transient=True)
        except httpx.HTTPError as e:
            raise CalendarProviderError(f"{what} transport error: {e}", transient=True)
        _check_response(resp, what)
        try:
            data = resp.json()
        except ValueError:
            raise CalendarProviderError(f"{what} returned invalid JSON", transient=True)
        if not isinstance(data, dict):
            raise CalendarProviderError(f"{what} returned a non-object body", transient=False)
        return data

    async def _free_busy_for(
        self, client: httpx.AsyncClient, host: Host, time_min: datetime, time_max: datetime
    ) -> list[BusyInterval]:
        data = await self._request(
            client,
            f"freeBusy for {host.email}",
            "POST",
            f"{self.base_url}/freeBusy",
            json={
                "timeMin": _iso(time_min),
                "timeMax": _iso(time_max),
                "items": [{"id": host.email}],
            },
            headers=self._headers(host),
        )

        calendars = data.get("calendars") or {}
        calendar = calendars.get(host.email) if isinstance(calendars, dict) else None
        if not isinstance(calendar, dict):
            raise CalendarProviderError(f"freeBusy returned no calendar for {host.email}", transient=False)
        errors = calendar.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            reasons = ",".join(str(e.get("reason") if isinstance(e, dict) else e) for e in errors)
            raise CalendarProviderError(f"freeBusy error for {host.email}: {reasons}", transient=False)

        items = calendar.get("busy") or []
        if not isinstance(items, list):
            raise CalendarProviderError(f"freeBusy returned malformed busy times for {host.email}", transient=False)

        busy = []
        for item in items:
            try:
                busy.append(BusyInterval(
                    start=to_utc(parser.isoparse(item["start"])),
                    end=to_utc(parser.isoparse(item["end"])),
                ))
            except (KeyError, ValueError, TypeError, AttributeError):
                raise CalendarProviderError(f"freeBusy returned a malformed interval for {host.email}", transient=False)
        return busy

    async def query_free_busy(
        self, hosts: list[Host], time_min: datetime, time_max: datetime
    ) -> dict[str, list[BusyInterval]]:
        async with self._client() as client:
            results = await asyncio.gather(
                *[self._free_busy_for(client, h, time_min, time_max) for h in hosts],
                return_exceptions=True,
            )

        busy_by_host = {}
        for host, result in zip(hosts, results):
            if isinstance(result, BaseException):
                raise result
            busy_by_host[host.id] = result
        return busy_by_host

    async def create_event(self, host: Host, event: EventRequest) -> CreatedEvent:
        body = {
            "summary": event.title,
            "description": event.description,
            "start": {"dateTime": _iso(event.start), "timeZone": "UTC"},
            "end": {"dateTime": _iso(event.end), "timeZone": "UTC"},
            "attendees": [{"email": email} for email in event.attendees],
            "conferenceData": {
                "createRequest": {
                    "requestId": f"podcast-booking-{uuid.uuid4()}",
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            },
        }

        async with self._client() as client:
            data = await self._request(
                client,
                f"create event for {host.email}",
                "POST",
                f"{self.base_url}/calendars/primary/events",
                params={"conferenceDataVersion": 1},
                json=body,
                headers=self._headers(host),
            )

        event_id = data.get("id")
        if not isinstance(event_id, str) or not event_id:
            raise CalendarProviderError("create event returned no event id", transient=False)
        return CreatedEvent(event_id=event_id, meeting_link=data.get("hangoutLink"))


class MemoryCalendarProvider:
    """
    In-process calendars for local runs and tests. Created events are added
    to the host's busy time, so a later recheck sees them.
    """

    def __init__(self, busy: dict[str, list[BusyInterval]] | None = None):
        self._busy: dict[str, list[BusyInterval]] = {k: list(v) for k, v in (busy or {}).items()}
        self.events: list[tuple[str, EventRequest, CreatedEvent]] = []
        self.failing_hosts: set[str] = set()
        self.fail_event_creation = False
        self.free_busy_calls = 0

    def add_busy(self, host_id: str, start: datetime, end: datetime):
        self._busy.setdefault(host_id, []).append(BusyInterval(to_utc(start), to_utc(end)))

    async def query_free_busy(
        self, hosts: list[Host], time_min: datetime, time_max: datetime
    ) -> dict[str, list[BusyInterval]]:
        self.free_busy_calls += 1
        result = {}
        for host in hosts:
            if host.id in self.failing_hosts:
                raise CalendarProviderError(f"calendar unavailable for {host.email}", transient=True)
            result[host.id] = [
                b for b in self._busy.get(host.id, [])
                if overlaps(b.start, b.end, time_min, time_max)
            ]
        return result

    async def create_event(self, host: Host, event: EventRequest) -> CreatedEvent:
        if self.fail_event_creation or host.id in self.failing_hosts:
            raise CalendarProviderError(f"event creation rejected for {host.email}", transient=False)
        created = CreatedEvent(
            event_id=uuid.uuid4().hex,
            meeting_link=f"https://meet.example.com/{uuid.uuid4().hex[:10]}",
        )
        self.add_busy(host.id, event.start, event.end)
        self.events.append((host.id, event, created))
        return created
