"""Grouped, read-only summary of entered data.

Sections follow the configured topic taxonomy in declaration order; a
topic with no visible non-empty field is omitted entirely.
"""

from __future__ import annotations

from typing import List, Mapping

from pydantic import BaseModel, Field

from barometer.logic.answer_canonical import display_value
from barometer.logic.field_registry import FieldRegistry


NO_DATA_MESSAGE = "No data to display"


class SummaryItem(BaseModel):
    field: str
    value: str


class SummarySection(BaseModel):
    title: str
    items: List[SummaryItem] = Field(default_factory=list)


class Summary(BaseModel):
    sections: List[SummarySection] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.sections

    def render_text(self) -> str:
        if self.is_empty:
            return NO_DATA_MESSAGE
        blocks: List[str] = []
        for section in self.sections:
            lines = [section.title]
            lines.extend(f"  {item.field}: {item.value}" for item in section.items)
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)


def generate_summary(
    registry: FieldRegistry,
    visibility: Mapping[str, bool],
    topics: Mapping[str, List[str]],
) -> Summary:
    sections: List[SummarySection] = []
    for title, names in topics.items():
        items: List[SummaryItem] = []
        for name in names:
            if name not in registry:
                continue
            desc = registry.get(name)
            if desc.block_id is not None and not visibility.get(desc.block_id, True):
                continue
            rendered = display_value(desc.kind, registry.resolve(name), desc.options)
            if rendered:
                items.append(SummaryItem(field=name, value=rendered))
        if items:
            sections.append(SummarySection(title=title, items=items))
    return Summary(sections=sections)


__all__ = ["NO_DATA_MESSAGE", "SummaryItem", "SummarySection", "Summary", "generate_summary"]
