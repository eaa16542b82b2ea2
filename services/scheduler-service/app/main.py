from datetime import time, timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.rabbitmq import RabbitPublisher

from . import config
from .assignment import AssignmentEngine
from .availability import AvailabilityEngine
from .booking_log import InMemoryBookingLog, SqlBookingLog
from .calendar_provider import GoogleCalendarProvider, MemoryCalendarProvider
from .cursor_store import MemoryCursorStore, RedisCursorStore
from .db import SessionLocal
from .domain import SlotConfig
from .errors import SchedulerError
from .event_details import build_details_generator
from .hosts import HostRegistry
from .middleware import RequestLoggingMiddleware
from .redis_client import redis_client
from .routes import router


def default_slot_config() -> SlotConfig:
    return SlotConfig(
        workday_start=time(config.WORKDAY_START_HOUR, 0),
        workday_end=time(config.WORKDAY_END_HOUR, 0),
        slot_duration=timedelta(minutes=config.SLOT_DURATION_MINUTES),
    )


def default_provider():
    if config.CALENDAR_PROVIDER == "memory":
        return MemoryCalendarProvider()
    if config.CALENDAR_PROVIDER == "google":
        return GoogleCalendarProvider()
    raise RuntimeError(f"Unknown CALENDAR_PROVIDER: {config.CALENDAR_PROVIDER}")


def create_app(
    registry: HostRegistry | None = None,
    provider=None,
    booking_log=None,
    cursor_store=None,
    details_generator=None,
    publisher: RabbitPublisher | None = None,
    slot_config: SlotConfig | None = None,
) -> FastAPI:
    registry = registry or HostRegistry.from_config(config.load_hosts())
    provider = provider or default_provider()
    if booking_log is None:
        booking_log = SqlBookingLog(SessionLocal) if SessionLocal is not None else InMemoryBookingLog()
    if cursor_store is None:
        cursor_store = RedisCursorStore(redis_client) if redis_client is not None else MemoryCursorStore()
    details_generator = details_generator or build_details_generator()
    publisher = publisher or RabbitPublisher(config.RABBIT_URL, config.SERVICE_NAME)
    slot_config = slot_config or default_slot_config()

    app = FastAPI(title="Podcast Booking Scheduler")
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(router)

    app.state.registry = registry
    app.state.publisher = publisher
    app.state.availability = AvailabilityEngine(registry, provider, slot_config)
    app.state.assignment = AssignmentEngine(
        registry,
        provider,
        booking_log,
        cursor_store,
        details_generator,
        publisher=publisher,
        slot_config=slot_config,
    )

    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(request: Request, exc: SchedulerError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": type(exc).__name__},
        )

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "service": config.SERVICE_NAME,
            "events_enabled": publisher.enabled,
        }

    @app.on_event("startup")
    async def startup():
        connected = len(registry.connected())
        print(f"[{config.SERVICE_NAME}] starting with {connected}/{len(registry.all())} hosts connected")
        # never crash the service if RabbitMQ is temporarily unavailable
        try:
            await publisher.connect()
        except Exception as e:
            print(f"[{config.SERVICE_NAME}] RabbitMQ connect failed at startup; continuing without events: {e}")

    @app.on_event("shutdown")
    async def shutdown():
        try:
            await publisher.close()
        except Exception:
            pass

    return app


app = create_app()
