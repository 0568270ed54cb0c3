"""Session clock: when the current form-filling session started."""

from __future__ import annotations

from typing import Callable, Optional
import math
import time


def epoch_millis() -> int:
    return int(time.time() * 1000)


class SessionClock:
    """Holds sessionStartEpochMillis and a source of "now".

    Created on first load, restored from a prior snapshot when one exists,
    and restarted when the persisted data is cleared.
    """

    def __init__(self, now: Callable[[], int] = epoch_millis, start: Optional[int] = None):
        self._now = now
        self.session_start: int = start if start is not None else now()

    def now(self) -> int:
        return int(self._now())

    def restart(self) -> int:
        self.session_start = self.now()
        return self.session_start

    def restore(self, start: int) -> None:
        self.session_start = int(start)

    def elapsed_minutes(self) -> int:
        """Whole minutes since session start, rounded half up."""
        elapsed = (self.now() - self.session_start) / 1000 / 60
        return int(math.floor(elapsed + 0.5))


__all__ = ["SessionClock", "epoch_millis"]
