"""Domain types shared by the availability and assignment engines."""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


@dataclass(frozen=True)
class Host:
    id: str
    name: str
    email: str
    credential: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.credential is not None


@dataclass(frozen=True)
class BusyInterval:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class CandidateSlot:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SlotConfig:
    """Daily grid of bookable slots, in UTC."""
    workday_start: time = time(9, 0)
    workday_end: time = time(17, 0)
    slot_duration: timedelta = timedelta(hours=1)


@dataclass(frozen=True)
class EventRequest:
    start: datetime
    end: datetime
    attendees: list[str]
    title: str
    description: str


@dataclass(frozen=True)
class CreatedEvent:
    event_id: str
    meeting_link: Optional[str] = None


@dataclass(frozen=True)
class BookingRequest:
    start_time: datetime
    guest_name: str
    guest_email: str
    topic: str


@dataclass(frozen=True)
class Booking:
    id: str
    start_time: datetime
    host: Host
    guest_name: str
    guest_email: str
    topic: str
    meeting_link: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # half-open: touching endpoints do not overlap
    return a_start < b_end and a_end > b_start


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Full UTC day, [00:00:00.000, 23:59:59.999]."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end
