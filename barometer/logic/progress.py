"""Progress calculation over the currently relevant fields.

Relevant = not meta-excluded and not inside a hidden block. Each logical
field counts once, however many member inputs it has.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping

from barometer.logic.field_registry import FieldDescriptor, FieldRegistry


@dataclass(frozen=True)
class Progress:
    filled: int
    total: int
    percentage: int

    def label(self) -> str:
        return f"Progress: {self.percentage}% ({self.filled}/{self.total} fields filled)"


def is_relevant(desc: FieldDescriptor, visibility: Mapping[str, bool]) -> bool:
    if desc.meta_excluded:
        return False
    if desc.block_id is not None and not visibility.get(desc.block_id, True):
        return False
    return True


def relevant_fields(registry: FieldRegistry, visibility: Mapping[str, bool]) -> List[FieldDescriptor]:
    return [d for d in registry if is_relevant(d, visibility)]


def round_half_up_percent(filled: int, total: int) -> int:
    # Half-up on integers: 1/8 -> 13, 1/200 -> 1
    return (200 * filled + total) // (2 * total)


def compute(registry: FieldRegistry, visibility: Mapping[str, bool]) -> Progress:
    fields = relevant_fields(registry, visibility)
    total = len(fields)
    filled = sum(1 for d in fields if registry.is_filled(d.name))
    percentage = round_half_up_percent(filled, total) if total > 0 else 0
    return Progress(filled=filled, total=total, percentage=percentage)


__all__ = ["Progress", "compute", "is_relevant", "relevant_fields"]
