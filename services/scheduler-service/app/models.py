from sqlalchemy import Column, Integer, String, DateTime

from shared.database import Base


class BookingRecord(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)
    booking_id = Column(String, unique=True, nullable=False, index=True)

    host_id = Column(String, nullable=False, index=True)
    host_name = Column(String, nullable=False)
    host_email = Column(String, nullable=False)

    guest_name = Column(String, nullable=False)
    guest_email = Column(String, nullable=False)
    topic = Column(String, nullable=False)

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    meeting_link = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
