"""Central logging configuration for the barometer service.

Applies a root stdout handler so module loggers emit INFO-level records
without per-module setup, keeps uvicorn loggers on the same handler, and
avoids duplicate handlers on reloads.
"""
from __future__ import annotations
import logging
from logging.config import dictConfig

_DICT_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        # Per-field snapshot diagnostics are noisy at INFO
        "barometer.logic.snapshot_codec": {"level": "WARNING"},
    },
}

def configure_logging() -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate
    output under reloaders and test runners.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_DICT_CONFIG)
