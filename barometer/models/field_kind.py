"""Field kinds derived from input modality by the field registry."""

from __future__ import annotations

from enum import Enum


class FieldKind(str, Enum):
    SINGLE = "single"
    MULTI_CHOICE_GROUP = "multi_choice_group"
    SINGLE_CHOICE_GROUP = "single_choice_group"


# Input modalities that map onto choice groups; anything else is Single.
CHOICE_MODALITIES = {
    "radio": FieldKind.SINGLE_CHOICE_GROUP,
    "checkbox": FieldKind.MULTI_CHOICE_GROUP,
}


def kind_for_modality(modality: str) -> FieldKind:
    return CHOICE_MODALITIES.get((modality or "").strip().lower(), FieldKind.SINGLE)


__all__ = ["FieldKind", "CHOICE_MODALITIES", "kind_for_modality"]
