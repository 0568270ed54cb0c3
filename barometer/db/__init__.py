"""Database package: engine management for the key-value store."""

from barometer.db.base import get_engine, ensure_schema, reset_engine

__all__ = ["get_engine", "ensure_schema", "reset_engine"]
