"""Persistence scheduler: decides when snapshots are written.

Three triggers share one persist_now() path:
- debounced write after a quiet period following the latest field input
- interval write, only when the dirty flag is set
- teardown write, synchronous, only when the dirty flag is set
A failed write is reported through the notifier and leaves the dirty flag
set so that a later trigger retries.
"""

from __future__ import annotations

from typing import Callable, Optional
import logging

from barometer.logic.errors import PersistenceWriteFailed, StorageError
from barometer.logic.notifications import DANGER, INFO, Notifier
from barometer.logic.scheduling import CancelHandle, RepeatingTask, Scheduler, schedule_every
from barometer.logic.storage import StorageSink
from barometer.models.snapshot import Snapshot


logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500
DEFAULT_INTERVAL_MS = 30_000


class PersistenceScheduler:
    """Owns the dirty flag and both timers for one session."""

    def __init__(
        self,
        storage: StorageSink,
        scheduler: Scheduler,
        snapshot_source: Callable[[], Snapshot],
        notifier: Notifier,
        snapshot_key: str,
        start_time_key: str,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ):
        self.storage = storage
        self.scheduler = scheduler
        self.snapshot_source = snapshot_source
        self.notifier = notifier
        self.snapshot_key = snapshot_key
        self.start_time_key = start_time_key
        self.debounce_ms = debounce_ms
        self.interval_ms = interval_ms
        self.dirty = False
        self.writes = 0
        self._debounce: Optional[CancelHandle] = None
        self._interval: Optional[RepeatingTask] = None

    def start(self) -> None:
        if self._interval is None:
            self._interval = schedule_every(self.scheduler, self.interval_ms, self._on_interval)

    def mark_dirty(self) -> None:
        """Record a field input and (re)start the debounce window."""
        self.dirty = True
        self.cancel_pending()
        self._debounce = self.scheduler.schedule_after(self.debounce_ms, self._on_debounce)

    def cancel_pending(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    def mark_clean(self) -> None:
        self.dirty = False
        self.cancel_pending()

    def persist_now(self) -> bool:
        """Encode current state and replace the stored record.

        Returns True on success. On failure the dirty flag is left untouched.
        """
        snapshot = self.snapshot_source()
        try:
            self.storage.set(self.snapshot_key, snapshot.to_json())
            if snapshot.session_start is not None:
                self.storage.set(self.start_time_key, str(snapshot.session_start))
        except StorageError as e:
            failure = PersistenceWriteFailed(str(e))
            logger.error("persist_failed key=%s error=%s", self.snapshot_key, failure, exc_info=True)
            self.notifier.notify("Your changes could not be saved yet; retrying later.", DANGER)
            return False
        self.dirty = False
        self.cancel_pending()
        self.writes += 1
        logger.info("persist_ok key=%s fields=%s", self.snapshot_key, len(snapshot.fields))
        return True

    def _on_debounce(self) -> None:
        self._debounce = None
        self.persist_now()

    def _on_interval(self) -> None:
        if not self.dirty:
            return
        if self.persist_now():
            self.notifier.notify("Saved", INFO)

    def teardown(self) -> bool:
        """Synchronous final write when dirty, then stop all timers."""
        ok = True
        if self.dirty:
            ok = self.persist_now()
        self.cancel_pending()
        if self._interval is not None:
            self._interval.cancel()
            self._interval = None
        return ok


__all__ = ["PersistenceScheduler", "DEFAULT_DEBOUNCE_MS", "DEFAULT_INTERVAL_MS"]
