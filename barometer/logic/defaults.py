"""Date and time field defaulting applied when a session opens."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
import logging

from barometer.logic.field_registry import FieldRegistry


logger = logging.getLogger(__name__)


def apply_datetime_defaults(
    registry: FieldRegistry,
    now: datetime,
    date_field: Optional[str],
    time_field: Optional[str],
) -> list[str]:
    """Fill an empty date field with today's ISO date and an empty time
    field with HH:MM. Returns the names that were filled."""
    filled: list[str] = []
    if date_field and date_field in registry and not registry.is_filled(date_field):
        registry.apply(date_field, now.date().isoformat())
        filled.append(date_field)
    if time_field and time_field in registry and not registry.is_filled(time_field):
        registry.apply(time_field, now.strftime("%H:%M"))
        filled.append(time_field)
    if filled:
        logger.debug("datetime_defaults_applied fields=%s", filled)
    return filled
