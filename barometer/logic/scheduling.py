"""Cancellable scheduled tasks.

All engine logic runs on a single event loop; a scheduled callback is just
another event ordered by its fire time. Two schedulers implement the same
`schedule_after(delay_ms, task) -> handle` contract:

- AsyncioScheduler: backed by the running asyncio loop (service use).
- ManualScheduler: virtual time advanced explicitly (tests, replay tools).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol
import asyncio
import heapq
import itertools
import logging


logger = logging.getLogger(__name__)

Task = Callable[[], None]


class CancelHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_after(self, delay_ms: int, task: Task) -> CancelHandle: ...


class AsyncioScheduler:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        # Resolved per call: the serving loop can change between requests
        return self._loop if self._loop is not None else asyncio.get_running_loop()

    def schedule_after(self, delay_ms: int, task: Task) -> CancelHandle:
        return self.loop.call_later(max(delay_ms, 0) / 1000, task)


@dataclass(order=True)
class _Entry:
    fire_at: int
    seq: int
    task: Task = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler over virtual milliseconds.

    Tasks due at the same instant run in scheduling order. `now_millis` can
    be handed to a SessionClock so timers and timestamps share one timeline.
    """

    def __init__(self, start_ms: int = 0):
        self._now = start_ms
        self._queue: List[_Entry] = []
        self._seq = itertools.count()

    def now_millis(self) -> int:
        return self._now

    def schedule_after(self, delay_ms: int, task: Task) -> CancelHandle:
        entry = _Entry(self._now + max(delay_ms, 0), next(self._seq), task)
        heapq.heappush(self._queue, entry)
        return entry

    def pending(self) -> int:
        return sum(1 for e in self._queue if not e.cancelled)

    def advance(self, ms: int) -> int:
        """Move time forward by `ms`, running every task that falls due.

        Returns the number of tasks run.
        """
        target = self._now + ms
        ran = 0
        while self._queue and self._queue[0].fire_at <= target:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self._now = entry.fire_at
            entry.task()
            ran += 1
        self._now = target
        return ran


class RepeatingTask:
    """Runs `task` every `period_ms` until cancelled."""

    def __init__(self, scheduler: Scheduler, period_ms: int, task: Task):
        self._scheduler = scheduler
        self._period_ms = period_ms
        self._task = task
        self._handle: Optional[CancelHandle] = None
        self._cancelled = False
        self._arm()

    def _arm(self) -> None:
        self._handle = self._scheduler.schedule_after(self._period_ms, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        try:
            self._task()
        finally:
            if not self._cancelled:
                self._arm()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


def schedule_every(scheduler: Scheduler, period_ms: int, task: Task) -> RepeatingTask:
    return RepeatingTask(scheduler, period_ms, task)


__all__ = [
    "CancelHandle",
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "RepeatingTask",
    "schedule_every",
]
