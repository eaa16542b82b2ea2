"""
Assignment engine: re-verifies the requested slot against every connected
host's live calendar, picks one free host (least booked that day, then
round-robin), creates the event and records the booking.

A whole booking attempt runs under `booking_lock`; the round-robin cursor
is written only after the booking is recorded, so a failed attempt leaves the
fairness state untouched.
"""

import asyncio
from dataclasses import replace
from datetime import date, datetime

from shared.events import build_event, to_json

from .booking_log import BookingLog
from .calendar_provider import CalendarProvider
from .config import PROVIDER_CALL_TIMEOUT, SERVICE_NAME
from .cursor_store import CursorStore
from .domain import Booking, BookingRequest, EventRequest, Host, SlotConfig, to_utc
from .errors import (
    BookingRecordFailed,
    CalendarProviderError,
    EventCreationFailed,
    NoHostsConnected,
    SlotUnavailable,
)
from .event_details import DetailsRequest, EventDetails, TemplateDetailsGenerator
from .hosts import HostRegistry

BOOKING_CREATED = "booking.created"


def pick_round_robin(connected: list[Host], least_booked: list[Host], cursor: int) -> tuple[Host, int]:
    """
    Scan the connected hosts from cursor + 1, wrapping once, and return the
    first one in `least_booked` together with its index.
    """
    n = len(connected)
    least_ids = {h.id for h in least_booked}

    index = (cursor + 1) % n
    for _ in range(n):
        if connected[index].id in least_ids:
            return connected[index], index
        index = (index + 1) % n

    fallback = least_booked[0]
    fallback_index = next((i for i, h in enumerate(connected) if h.id == fallback.id), cursor)
    return fallback, fallback_index


def booking_payload(booking: Booking) -> dict:
    return {
        "booking_id": booking.id,
        "start_time": to_utc(booking.start_time).isoformat(),
        "host_id": booking.host.id,
        "host_email": booking.host.email,
        "guest_name": booking.guest_name,
        "guest_email": booking.guest_email,
        "topic": booking.topic,
        "meeting_link": booking.meeting_link,
    }


class AssignmentEngine:
    def __init__(
        self,
        registry: HostRegistry,
        provider: CalendarProvider,
        booking_log: BookingLog,
        cursor_store: CursorStore,
        details_generator,
        publisher=None,
        slot_config: SlotConfig | None = None,
        call_timeout: float = PROVIDER_CALL_TIMEOUT,
    ):
        self.registry = registry
        self.provider = provider
        self.booking_log = booking_log
        self.cursor_store = cursor_store
        self.details_generator = details_generator
        self.publisher = publisher
        self.slot_config = slot_config or SlotConfig()
        self.call_timeout = call_timeout
        self.booking_lock = asyncio.Lock()

    async def _host_is_free(self, host: Host, start: datetime, end: datetime) -> bool:
        try:
            busy = await asyncio.wait_for(
                self.provider.query_free_busy([host], start, end),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError:
            print(f"[{SERVICE_NAME}] could not verify availability for {host.email}: timed out")
            return False
        except CalendarProviderError as e:
            kind = "transient" if e.transient else "fatal"
            print(f"[{SERVICE_NAME}] could not verify availability for {host.email} ({kind}): {e}")
            return False
        return len(busy.get(host.id, [])) == 0

    async def recheck(self, hosts: list[Host], start: datetime, end: datetime) -> list[Host]:
        """Hosts whose calendars are free for exactly [start, end); failures count as busy."""
        results = await asyncio.gather(*[self._host_is_free(h, start, end) for h in hosts])
        return [h for h, free in zip(hosts, results) if free]

    async def least_booked(self, candidates: list[Host], day: date) -> list[Host]:
        counts = []
        for host in candidates:
            counts.append((host, await self.booking_log.count_by_host_and_day(host.id, day)))
        min_count = min(c for _, c in counts)
        return [h for h, c in counts if c == min_count]

    async def _generate_details(self, info: DetailsRequest) -> EventDetails:
        try:
            return await asyncio.wait_for(
                self.details_generator.generate_details(info),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError:
            print(f"[{SERVICE_NAME}] event details generation timed out; using template")
            return await TemplateDetailsGenerator().generate_details(info)

    async def _create_event(self, host: Host, event: EventRequest):
        try:
            return await asyncio.wait_for(
                self.provider.create_event(host, event),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError:
            print(f"[{SERVICE_NAME}] event creation timed out for {host.email}")
            raise EventCreationFailed("Failed to create calendar event.")
        except CalendarProviderError as e:
            print(f"[{SERVICE_NAME}] event creation failed for {host.email}: {e}")
            raise EventCreationFailed("Failed to create calendar event.")

    async def book_slot(self, request: BookingRequest) -> Booking:
        connected = self.registry.connected()
        if not connected:
            raise NoHostsConnected("No hosts have connected their calendars.")

        start = to_utc(request.start_time)
        end = start + self.slot_config.slot_duration

        async with self.booking_lock:
            candidates = await self.recheck(connected, start, end)
            if not candidates:
                raise SlotUnavailable("This slot is no longer available. Please select another time.")

            least = await self.least_booked(candidates, start.date())
            cursor = await self.cursor_store.get()
            host, index = pick_round_robin(connected, least, cursor)

            details = await self._generate_details(DetailsRequest(
                host_name=host.name,
                guest_name=request.guest_name,
                guest_email=request.guest_email,
                topic=request.topic,
                date=start.date(),
                time=start.strftime("%H:%M UTC"),
            ))

            created = await self._create_event(host, EventRequest(
                start=start,
                end=end,
                attendees=[host.email, request.guest_email],
                title=details.title,
                description=details.description,
            ))

            booking = Booking(
                id=created.event_id,
                start_time=start,
                host=replace(host, credential=None),
                guest_name=request.guest_name,
                guest_email=request.guest_email,
                topic=request.topic,
                meeting_link=created.meeting_link,
            )
            try:
                await self.booking_log.append(booking)
            except Exception as e:
                print(f"[{SERVICE_NAME}] could not record booking {created.event_id} for {host.email}: {e}")
                raise BookingRecordFailed(
                    f"Calendar event {created.event_id} was created but the booking could not be recorded.",
                    event_id=created.event_id,
                )
            # cursor moves only once the booking is stored
            await self.cursor_store.set(index)

        print(f"[{SERVICE_NAME}] booked {start.isoformat()} with {host.email} for {request.guest_email}")

        if self.publisher is not None:
            await self.publisher.publish(BOOKING_CREATED, to_json(build_event(BOOKING_CREATED, booking_payload(booking))))

        return booking
