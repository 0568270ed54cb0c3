"""Configuration loading for the barometer service.

Rules:
- Primary source: `barometer_config.json` at the project root (optional).
- Overrides: environment variables (highest precedence).
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


ROOT_CONFIG = Path("barometer_config.json")
logger = logging.getLogger(__name__)


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class StorageConfig(BaseModel):
    dsn: str = "sqlite+pysqlite:///:memory:"
    snapshot_key: str = "facilo_rapido_journal"
    start_time_key: str = "facilo_rapido_start_time"
    theme_key: str = "facilo_rapido_theme"

    @field_validator("dsn", "snapshot_key", "start_time_key", "theme_key")
    @classmethod
    def must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("storage settings must be non-empty strings")
        return v


class TimingConfig(BaseModel):
    debounce_ms: int = Field(default=500, gt=0)
    autosave_interval_ms: int = Field(default=30_000, gt=0)
    idle_timeout_ms: int = Field(default=1_800_000, gt=0)
    idle_sweep_ms: int = Field(default=60_000, gt=0)


class TransportConfig(BaseModel):
    url: Optional[str] = None
    timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("transport.url must be an http(s) URL")
        return v


class FormConfig(BaseModel):
    # None selects the packaged emotional barometer form
    schema_path: Optional[str] = None


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    form: FormConfig = Field(default_factory=FormConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) barometer_config.json
    3) Model defaults
    """
    base = _read_json_file(path or ROOT_CONFIG)
    storage = dict(base.get("storage") or {})
    timing = dict(base.get("timing") or {})
    transport = dict(base.get("transport") or {})
    form = dict(base.get("form") or {})

    dsn = _env("BAROMETER_DATABASE_URL")
    if dsn:
        storage["dsn"] = dsn
    debounce = _env("BAROMETER_DEBOUNCE_MS")
    if debounce:
        timing["debounce_ms"] = debounce.strip()
    interval = _env("BAROMETER_AUTOSAVE_INTERVAL_MS")
    if interval:
        timing["autosave_interval_ms"] = interval.strip()
    idle = _env("BAROMETER_IDLE_TIMEOUT_MS")
    if idle:
        timing["idle_timeout_ms"] = idle.strip()
    url = _env("BAROMETER_TRANSPORT_URL")
    if url:
        transport["url"] = url.strip()
    schema_path = _env("BAROMETER_FORM_SCHEMA")
    if schema_path:
        form["schema_path"] = schema_path.strip()

    try:
        return AppConfig(
            storage=StorageConfig(**storage),
            timing=TimingConfig(**timing),
            transport=TransportConfig(**transport),
            form=FormConfig(**form),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "StorageConfig",
    "TimingConfig",
    "TransportConfig",
    "FormConfig",
    "load_config",
]
