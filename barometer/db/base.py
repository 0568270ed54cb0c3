"""SQLAlchemy engine management for the durable key-value store.

Targets any SQLAlchemy-supported database. The URL always comes from
`StorageConfig.dsn`, which defaults to in-memory SQLite and can be
overridden with BAROMETER_DATABASE_URL.
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# Module-level cached Engine shared by every storage handle
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads.
    """
    global _ENGINE, _ENGINE_URL
    if _ENGINE is None or _ENGINE_URL != url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if url.startswith("sqlite") and ":memory:" in url:
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        _ENGINE = create_engine(url, **kwargs)
        _ENGINE_URL = url
        ensure_schema(_ENGINE)

    return _ENGINE


def ensure_schema(engine: Engine) -> None:
    """Create the key-value table when missing."""
    with engine.begin() as conn:
        conn.execute(
            sql_text(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    namespace VARCHAR(255) NOT NULL,
                    item_key VARCHAR(255) NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (namespace, item_key)
                )
                """
            )
        )
    logger.info("kv_store_schema_ready dialect=%s", engine.dialect.name)


def reset_engine() -> None:
    """Dispose the cached engine (tests switch databases between runs)."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None
