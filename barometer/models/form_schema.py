"""Pydantic models for the declarative form schema.

The schema is the engine's stand-in for the rendered form: a flat list of
named input elements, the conditional blocks that contain some of them, and
the summary topic taxonomy.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


ALLOWED_MODALITIES = {
    "text",
    "textarea",
    "number",
    "date",
    "time",
    "email",
    "select",
    "hidden",
    "radio",
    "checkbox",
    "range",
}


class InputElement(BaseModel):
    """One named input. Choice inputs may declare `options` as a shorthand
    for one member element per option value."""

    name: str
    type: str = "text"
    value: Optional[str] = None
    block: Optional[str] = None
    options: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def name_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("element name must be a non-empty string")
        return v

    @field_validator("type")
    @classmethod
    def type_must_be_known(cls, v: str) -> str:
        t = (v or "").strip().lower()
        if t not in ALLOWED_MODALITIES:
            raise ValueError(f"element type must be one of {sorted(ALLOWED_MODALITIES)}")
        return t

    def members(self) -> List["InputElement"]:
        """Expand the options shorthand into individual member elements."""
        if not self.options:
            return [self]
        return [
            InputElement(name=self.name, type=self.type, value=opt, block=self.block)
            for opt in self.options
        ]


class ConditionalBlock(BaseModel):
    id: str
    # "<field name>:<required value>"; absent means always visible
    show_when: Optional[str] = None


class FormSchema(BaseModel):
    title: str = ""
    reserved_prefix: str = "_"
    elements: List[InputElement] = Field(default_factory=list)
    blocks: List[ConditionalBlock] = Field(default_factory=list)
    topics: Dict[str, List[str]] = Field(default_factory=dict)
    emotional_fields: List[str] = Field(default_factory=list)
    min_emotional_signals: int = Field(default=2, ge=0)
    duration_field: Optional[str] = None
    date_field: Optional[str] = None
    time_field: Optional[str] = None

    @model_validator(mode="after")
    def blocks_must_be_declared(self) -> "FormSchema":
        ids = [b.id for b in self.blocks]
        if len(ids) != len(set(ids)):
            raise ValueError("block ids must be unique")
        known = set(ids)
        for el in self.elements:
            if el.block is not None and el.block not in known:
                raise ValueError(f"element {el.name!r} references undeclared block {el.block!r}")
        return self

    def expanded_elements(self) -> List[InputElement]:
        out: List[InputElement] = []
        for el in self.elements:
            out.extend(el.members())
        return out


__all__ = ["InputElement", "ConditionalBlock", "FormSchema", "ALLOWED_MODALITIES"]
