from typing import Protocol

CURSOR_KEY = "scheduler:round_robin_cursor"


class CursorStore(Protocol):
    async def get(self) -> int:
        ...

    async def set(self, value: int) -> None:
        ...


class MemoryCursorStore:
    """Process-lifetime cursor; resets to `initial` on restart."""

    def __init__(self, initial: int = -1):
        self._value = initial

    async def get(self) -> int:
        return self._value

    async def set(self, value: int) -> None:
        self._value = value


class RedisCursorStore:
    """Cursor persisted in Redis so fairness survives restarts."""

    def __init__(self, client, key: str = CURSOR_KEY, initial: int = -1):
        self.client = client
        self.key = key
        self.initial = initial

    async def get(self) -> int:
        raw = await self.client.get(self.key)
        if raw is None:
            return self.initial
        try:
            return int(raw)
        except ValueError:
            return self.initial

    async def set(self, value: int) -> None:
        await self.client.set(self.key, str(value))
