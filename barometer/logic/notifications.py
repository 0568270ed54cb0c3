"""Notification side-channel.

Defines the severity constants and a buffering notifier that logs every
message and keeps it until the presentation layer drains it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol
import logging

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
DANGER = "danger"

SEVERITIES = (INFO, WARNING, DANGER)

_LOG_LEVELS = {INFO: logging.INFO, WARNING: logging.WARNING, DANGER: logging.ERROR}


class Notifier(Protocol):
    def notify(self, message: str, severity: str = INFO) -> None: ...


class BufferedNotifier:
    def __init__(self) -> None:
        self._buffer: List[Dict[str, Any]] = []

    def notify(self, message: str, severity: str = INFO) -> None:
        if severity not in SEVERITIES:
            raise ValueError(f"severity must be one of {SEVERITIES}")
        logger.log(_LOG_LEVELS[severity], "notify severity=%s message=%s", severity, message)
        self._buffer.append({"message": message, "severity": severity})

    def drain(self) -> List[Dict[str, Any]]:
        """Return buffered notifications and clear the buffer."""
        out = list(self._buffer)
        self._buffer.clear()
        return out


__all__ = ["INFO", "WARNING", "DANGER", "SEVERITIES", "Notifier", "BufferedNotifier"]
