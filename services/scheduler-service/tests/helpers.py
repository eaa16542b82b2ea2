"""Shared builders for the scheduler tests."""

import asyncio
from datetime import datetime, timezone

from app.assignment import AssignmentEngine
from app.availability import AvailabilityEngine
from app.booking_log import InMemoryBookingLog
from app.calendar_provider import MemoryCalendarProvider
from app.cursor_store import MemoryCursorStore
from app.domain import BookingRequest, Host
from app.event_details import TemplateDetailsGenerator
from app.hosts import HostRegistry


def utc(day: str, hour: int, minute: int = 0) -> datetime:
    y, m, d = (int(x) for x in day.split("-"))
    return datetime(y, m, d, hour, minute, tzinfo=timezone.utc)


def request_at(start: datetime, guest: str = "Guest") -> BookingRequest:
    return BookingRequest(
        start_time=start,
        guest_name=guest,
        guest_email=f"{guest.lower()}@guests.example.com",
        topic="Distributed systems",
    )


class RecordingPublisher:
    enabled = True

    def __init__(self):
        self.published = []

    async def publish(self, routing_key: str, body: str):
        self.published.append((routing_key, body))


class Scheduler:
    """Both engines wired over one in-memory provider, log and cursor."""

    def __init__(self, hosts: list[Host], cursor: int = -1, call_timeout: float = 2.0, provider=None):
        self.registry = HostRegistry(hosts)
        self.provider = provider or MemoryCalendarProvider()
        self.log = InMemoryBookingLog()
        self.cursor = MemoryCursorStore(initial=cursor)
        self.publisher = RecordingPublisher()
        self.availability = AvailabilityEngine(self.registry, self.provider, call_timeout=call_timeout)
        self.assignment = AssignmentEngine(
            self.registry,
            self.provider,
            self.log,
            self.cursor,
            TemplateDetailsGenerator(),
            publisher=self.publisher,
            call_timeout=call_timeout,
        )

    def slots(self, day):
        return asyncio.run(self.availability.list_available_slots(day))

    def book(self, start: datetime, guest: str = "Guest"):
        return asyncio.run(self.assignment.book_slot(request_at(start, guest)))


