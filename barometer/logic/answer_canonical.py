"""Canonicalization helpers for field values.

Provides the normalisation rules shared by the registry, progress and
summary code so that "empty" means the same thing everywhere.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from barometer.models.field_kind import FieldKind


FieldValue = Union[str, frozenset, None]


def empty_value(kind: FieldKind) -> FieldValue:
    """Return the empty/unselected value for a field kind."""
    if kind is FieldKind.SINGLE_CHOICE_GROUP:
        return None
    if kind is FieldKind.MULTI_CHOICE_GROUP:
        return frozenset()
    return ""


def is_filled(kind: FieldKind, value: FieldValue) -> bool:
    """Return True when a value counts as answered.

    - Single: non-blank after trimming surrounding whitespace
    - SingleChoiceGroup: a selection exists
    - MultiChoiceGroup: at least one member selected
    """
    if kind is FieldKind.SINGLE_CHOICE_GROUP:
        return value is not None
    if kind is FieldKind.MULTI_CHOICE_GROUP:
        return bool(value)
    return isinstance(value, str) and value.strip() != ""


def canonicalize_single(value: object) -> str:
    """Single inputs hold text; numbers are stored in integer form when integral."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def canonicalize_choices(value: object) -> frozenset:
    """Accept a scalar or an iterable of option values and return a set."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset([value]) if value != "" else frozenset()
    if isinstance(value, Iterable):
        return frozenset(str(v) for v in value if v is not None)
    return frozenset([str(value)])


def ordered_choices(selected: Iterable[str], options: Iterable[str]) -> list[str]:
    """Return selected options in declaration order."""
    chosen = set(selected)
    return [opt for opt in options if opt in chosen]


def display_value(kind: FieldKind, value: FieldValue, options: Iterable[str] = ()) -> Optional[str]:
    """Human-readable rendering used by the summary; None when empty."""
    if not is_filled(kind, value):
        return None
    if kind is FieldKind.MULTI_CHOICE_GROUP:
        return ", ".join(ordered_choices(value, options))  # type: ignore[arg-type]
    if kind is FieldKind.SINGLE_CHOICE_GROUP:
        return str(value)
    return str(value).strip()
