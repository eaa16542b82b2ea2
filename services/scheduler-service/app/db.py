from shared.database import get_engine, get_session

from .config import BOOKINGS_DB

engine = get_engine(BOOKINGS_DB) if BOOKINGS_DB else None

SessionLocal = get_session(engine) if engine is not None else None
