"""Storage sinks: durable key-value stores for snapshots and preferences.

Two implementations share the get/set/remove contract:
- InMemoryStorage: process-local dict, with an optional byte quota that
  mirrors browser storage limits.
- SqlStorage: a namespaced table behind a SQLAlchemy engine.
Writes that fail raise StorageError; callers decide whether that is fatal.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol
import logging

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from barometer.logic.errors import StorageError


logger = logging.getLogger(__name__)


class StorageSink(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStorage:
    def __init__(self, quota_bytes: Optional[int] = None):
        self._items: Dict[str, str] = {}
        self.quota_bytes = quota_bytes
        self.available = True

    def _check_available(self) -> None:
        if not self.available:
            raise StorageError("storage unavailable")

    def get(self, key: str) -> Optional[str]:
        self._check_available()
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_available()
        if self.quota_bytes is not None:
            used = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
            if used + len(key) + len(value) > self.quota_bytes:
                raise StorageError(f"quota exceeded writing key={key}")
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._check_available()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class SqlStorage:
    """Key-value rows scoped to one client namespace."""

    def __init__(self, engine: Engine, namespace: str):
        self.engine = engine
        self.namespace = namespace

    def get(self, key: str) -> Optional[str]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    sql_text("SELECT value FROM kv_store WHERE namespace = :ns AND item_key = :k"),
                    {"ns": self.namespace, "k": key},
                ).fetchone()
        except SQLAlchemyError as e:
            logger.error("storage_get_failed ns=%s key=%s", self.namespace, key, exc_info=True)
            raise StorageError(f"read failed for key={key}") from e
        return None if row is None else str(row[0])

    def set(self, key: str, value: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    sql_text("DELETE FROM kv_store WHERE namespace = :ns AND item_key = :k"),
                    {"ns": self.namespace, "k": key},
                )
                conn.execute(
                    sql_text("INSERT INTO kv_store (namespace, item_key, value) VALUES (:ns, :k, :v)"),
                    {"ns": self.namespace, "k": key, "v": value},
                )
        except SQLAlchemyError as e:
            logger.error("storage_set_failed ns=%s key=%s", self.namespace, key, exc_info=True)
            raise StorageError(f"write failed for key={key}") from e

    def remove(self, key: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    sql_text("DELETE FROM kv_store WHERE namespace = :ns AND item_key = :k"),
                    {"ns": self.namespace, "k": key},
                )
        except SQLAlchemyError as e:
            logger.error("storage_remove_failed ns=%s key=%s", self.namespace, key, exc_info=True)
            raise StorageError(f"remove failed for key={key}") from e


__all__ = ["StorageSink", "InMemoryStorage", "SqlStorage"]
