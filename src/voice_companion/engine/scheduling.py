"""Cancellable delayed callbacks for reply pauses and greeting delays."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class ScheduledTask(Protocol):
    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledTask: ...


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._get_loop().call_later(max(0.0, delay_s), callback)


class PendingCall:
    """Holds at most one outstanding scheduled callback."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._task: ScheduledTask | None = None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.cancelled()

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> None:
        """Replace any outstanding callback with a new one."""
        self.cancel()

        def _fire() -> None:
            self._task = None
            callback()

        self._task = self._scheduler.call_later(delay_s, _fire)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
