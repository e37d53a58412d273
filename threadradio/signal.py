"""A single-slot signal carrying the latest value to an awaiting task."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")


class Signal(Generic[T]):
    """Holds at most one pending value; a new value replaces an unconsumed one.

    Intended for a single awaiting task at a time.
    """

    def __init__(self) -> None:
        self._pending = False
        self._value: T | None = None
        self._event = asyncio.Event()

    def signal(self, value: T) -> None:
        """Store ``value`` and wake the waiting task, if any."""
        self._value = value
        self._pending = True
        self._event.set()

    def reset(self) -> None:
        """Drop the pending value, if any."""
        self._pending = False
        self._value = None
        self._event.clear()

    async def wait(self) -> T:
        """Wait until signaled, then take the value and leave the signal empty."""
        await self.wait_signaled()
        value = self._value
        self.reset()
        return value  # type: ignore[return-value]

    async def wait_signaled(self) -> None:
        """Wait until signaled without consuming the value."""
        while not self._pending:
            self._event.clear()
            await self._event.wait()

    def try_take(self) -> T | None:
        """Take the pending value without waiting; ``None`` if there is none."""
        if not self._pending:
            return None
        value = self._value
        self.reset()
        return value

    def signaled(self) -> bool:
        """Return whether a value is pending, without consuming it."""
        return self._pending