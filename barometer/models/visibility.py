"""Visibility-related reusable types."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


# blockId -> visible; always fully recomputed, never patched
VisibilitySet = Dict[str, bool]


class VisibilityDelta(BaseModel):
    now_visible: List[str] = Field(default_factory=list)
    now_hidden: List[str] = Field(default_factory=list)
    # Fields reset because their block is hidden
    cleared: List[str] = Field(default_factory=list)


__all__ = ["VisibilitySet", "VisibilityDelta"]
