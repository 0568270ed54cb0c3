"""Persisted snapshot record.

Wire shape (JSON): {"timestamp": int, "startTime": int|null, "fields": {...}}
where each field value is written as a string or a list of strings. Field
values are read back as any JSON value so one odd entry (a bare number, an
object) can be skipped by the codec without discarding the whole record.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


SnapshotValue = Union[str, List[str]]


class Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    captured_at: int = Field(alias="timestamp")
    session_start: Optional[int] = Field(default=None, alias="startTime")
    fields: Dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


__all__ = ["Snapshot", "SnapshotValue"]
