"""
Append-only booking log. The assignment engine only needs `append` and
`count_by_host_and_day`; `all` backs inspection and tests.
"""

from datetime import date, datetime, timedelta
from typing import Protocol

from sqlalchemy import select, func

from .domain import Booking, Host, day_bounds, to_utc
from .models import BookingRecord


class BookingLog(Protocol):
    async def append(self, booking: Booking) -> None:
        ...

    async def count_by_host_and_day(self, host_id: str, day: date) -> int:
        ...

    async def all(self) -> list[Booking]:
        ...


class InMemoryBookingLog:
    def __init__(self):
        self._bookings: list[Booking] = []

    async def append(self, booking: Booking) -> None:
        self._bookings.append(booking)

    async def count_by_host_and_day(self, host_id: str, day: date) -> int:
        return sum(
            1 for b in self._bookings
            if b.host.id == host_id and to_utc(b.start_time).date() == day
        )

    async def all(self) -> list[Booking]:
        return list(self._bookings)


def _record_to_booking(r: BookingRecord) -> Booking:
    return Booking(
        id=r.booking_id,
        start_time=to_utc(r.start_time),
        host=Host(id=r.host_id, name=r.host_name, email=r.host_email),
        guest_name=r.guest_name,
        guest_email=r.guest_email,
        topic=r.topic,
        meeting_link=r.meeting_link,
        created_at=to_utc(r.created_at),
    )


class SqlBookingLog:
    """Durable log over an async SQLAlchemy sessionmaker."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def append(self, booking: Booking) -> None:
        async with self.session_factory() as db:
            db.add(BookingRecord(
                booking_id=booking.id,
                host_id=booking.host.id,
                host_name=booking.host.name,
                host_email=booking.host.email,
                guest_name=booking.guest_name,
                guest_email=booking.guest_email,
                topic=booking.topic,
                start_time=to_utc(booking.start_time),
                meeting_link=booking.meeting_link,
                created_at=to_utc(booking.created_at),
            ))
            await db.commit()

    async def count_by_host_and_day(self, host_id: str, day: date) -> int:
        day_start, _ = day_bounds(day)
        next_day: datetime = day_start + timedelta(days=1)
        async with self.session_factory() as db:
            res = await db.execute(
                select(func.count(BookingRecord.id)).where(
                    BookingRecord.host_id == host_id,
                    BookingRecord.start_time >= day_start,
                    BookingRecord.start_time < next_day,
                )
            )
            return res.scalar_one()

    async def all(self) -> list[Booking]:
        async with self.session_factory() as db:
            res = await db.execute(select(BookingRecord).order_by(BookingRecord.id))
            return [_record_to_booking(r) for r in res.scalars().all()]
