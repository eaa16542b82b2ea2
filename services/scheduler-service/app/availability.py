"""
Availability engine: turns the connected hosts' busy intervals for one UTC
day into the ordered list of slots where at least one host is free.
"""

import asyncio
from datetime import date, datetime, timezone

from .calendar_provider import CalendarProvider
from .config import PROVIDER_CALL_TIMEOUT, SERVICE_NAME
from .domain import BusyInterval, CandidateSlot, Host, SlotConfig, day_bounds, overlaps
from .errors import CalendarProviderError, ProviderUnavailable
from .hosts import HostRegistry


def candidate_slots(day: date, config: SlotConfig) -> list[CandidateSlot]:
    start = datetime.combine(day, config.workday_start, tzinfo=timezone.utc)
    workday_end = datetime.combine(day, config.workday_end, tzinfo=timezone.utc)

    slots = []
    while start + config.slot_duration <= workday_end:
        slots.append(CandidateSlot(start=start, end=start + config.slot_duration))
        start += config.slot_duration
    return slots


def host_is_free(slot_start: datetime, slot_end: datetime, busy: list[BusyInterval]) -> bool:
    return not any(overlaps(slot_start, slot_end, b.start, b.end) for b in busy)


class AvailabilityEngine:
    def __init__(
        self,
        registry: HostRegistry,
        provider: CalendarProvider,
        slot_config: SlotConfig | None = None,
        call_timeout: float = PROVIDER_CALL_TIMEOUT,
    ):
        self.registry = registry
        self.provider = provider
        self.slot_config = slot_config or SlotConfig()
        self.call_timeout = call_timeout

    async def _fetch_busy(self, hosts: list[Host], day: date) -> dict[str, list[BusyInterval]]:
        time_min, time_max = day_bounds(day)
        try:
            return await asyncio.wait_for(
                self.provider.query_free_busy(hosts, time_min, time_max),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError:
            print(f"[{SERVICE_NAME}] free/busy query timed out for {day.isoformat()}")
            raise ProviderUnavailable("Timed out fetching calendar availability.")
        except CalendarProviderError as e:
            print(f"[{SERVICE_NAME}] free/busy query failed for {day.isoformat()}: {e}")
            raise ProviderUnavailable("Failed to fetch calendar availability.")

    async def list_available_slots(self, day: date) -> list[CandidateSlot]:
        hosts = self.registry.connected()
        if not hosts:
            return []

        busy_by_host = await self._fetch_busy(hosts, day)

        available = []
        for slot in candidate_slots(day, self.slot_config):
            # any-free: one free host is enough to offer the slot
            if any(host_is_free(slot.start, slot.end, busy_by_host.get(h.id, [])) for h in hosts):
                available.append(slot)
        return available
