"""Pydantic models for session API request and response bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from barometer.logic.summary import Summary
from barometer.models.visibility import VisibilityDelta


class OpenSessionRequest(BaseModel):
    client_id: str = Field(min_length=1, max_length=200)


class FieldUpdate(BaseModel):
    value: Union[str, int, float, bool, List[str], None] = None


class ProgressView(BaseModel):
    filled: int
    total: int
    percentage: int
    label: str


class Notification(BaseModel):
    message: str
    severity: str


class SessionView(BaseModel):
    session_id: str
    client_id: str
    state: str
    restored: bool = False
    session_start: int
    values: Dict[str, Any]
    visibility: Dict[str, bool]
    progress: ProgressView
    notifications: List[Notification] = Field(default_factory=list)


class FieldChangeView(BaseModel):
    session: SessionView
    visibility_delta: VisibilityDelta


class SubmitView(BaseModel):
    state: str
    field_errors: Dict[str, str] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    summary: Optional[Summary] = None
    summary_text: Optional[str] = None
    duration_minutes: Optional[int] = None
    notifications: List[Notification] = Field(default_factory=list)


class ConfirmView(BaseModel):
    state: str
    delivered: bool
    notifications: List[Notification] = Field(default_factory=list)


class StateView(BaseModel):
    state: str
    last_outcome: Optional[str] = None


class ThemeView(BaseModel):
    client_id: str
    theme: str


__all__ = [
    "OpenSessionRequest",
    "FieldUpdate",
    "ProgressView",
    "Notification",
    "SessionView",
    "FieldChangeView",
    "SubmitView",
    "ConfirmView",
    "StateView",
    "ThemeView",
]
