"""Light/dark theme preference kept in the client's storage."""

from __future__ import annotations

import logging

from barometer.logic.errors import StorageError
from barometer.logic.storage import StorageSink


logger = logging.getLogger(__name__)

LIGHT = "light"
DARK = "dark"
THEMES = (LIGHT, DARK)


def load_theme(storage: StorageSink, key: str) -> str:
    try:
        saved = storage.get(key)
    except StorageError:
        logger.warning("theme_load_failed key=%s", key, exc_info=True)
        return LIGHT
    return saved if saved in THEMES else LIGHT


def set_theme(storage: StorageSink, key: str, theme: str) -> str:
    if theme not in THEMES:
        raise ValueError(f"theme must be one of {THEMES}")
    storage.set(key, theme)
    return theme


def toggle_theme(storage: StorageSink, key: str) -> str:
    current = load_theme(storage, key)
    return set_theme(storage, key, DARK if current == LIGHT else LIGHT)


__all__ = ["LIGHT", "DARK", "THEMES", "load_theme", "set_theme", "toggle_theme"]
