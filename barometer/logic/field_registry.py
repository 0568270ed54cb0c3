"""Field registry: logical fields derived from the form schema.

Groups input elements that share a name into one FieldDescriptor and
classifies each group by modality (radio -> single choice, checkbox ->
multi choice, anything else -> single value). Lookups by name are
validated here once, at schema-load time; the rest of the engine reasons
about FieldDescriptor.kind only and never about element type strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import logging

from barometer.logic.answer_canonical import (
    FieldValue,
    canonicalize_choices,
    canonicalize_single,
    empty_value,
    is_filled,
)
from barometer.logic.errors import SchemaConflict, UnknownField
from barometer.logic.field_store import FieldStore, InMemoryFieldStore
from barometer.models.field_kind import FieldKind, kind_for_modality
from barometer.models.form_schema import FormSchema, InputElement


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    kind: FieldKind
    meta_excluded: bool = False
    # Names starting with the reserved prefix are transport metadata: never
    # persisted, recomputed at submit time.
    transport_reserved: bool = False
    is_email: bool = False
    block_id: Optional[str] = None
    options: Tuple[str, ...] = ()
    default: Optional[str] = None

    def initial_value(self) -> FieldValue:
        if self.kind is FieldKind.SINGLE:
            return self.default or ""
        return empty_value(self.kind)


def classify(schema: FormSchema) -> List[FieldDescriptor]:
    """Return one descriptor per distinct field name, in declaration order.

    Raises SchemaConflict when one name is declared with two modalities or
    inside two different blocks.
    """
    grouped: Dict[str, List[InputElement]] = {}
    for el in schema.expanded_elements():
        grouped.setdefault(el.name, []).append(el)

    prefix = schema.reserved_prefix
    descriptors: List[FieldDescriptor] = []
    for name, members in grouped.items():
        modalities = {m.type for m in members}
        if len(modalities) > 1:
            raise SchemaConflict(name, f"mixed input modalities {sorted(modalities)}")
        blocks = {m.block for m in members}
        if len(blocks) > 1:
            raise SchemaConflict(name, f"members span several blocks {sorted(str(b) for b in blocks)}")
        modality = members[0].type
        kind = kind_for_modality(modality)
        reserved = bool(prefix) and name.startswith(prefix)
        options: Tuple[str, ...] = ()
        default: Optional[str] = None
        if kind is FieldKind.SINGLE:
            default = members[0].value
        else:
            seen: List[str] = []
            for m in members:
                # An unvalued checkbox/radio submits "on", as browsers do
                opt = m.value if m.value is not None else "on"
                if opt not in seen:
                    seen.append(opt)
            options = tuple(seen)
        descriptors.append(
            FieldDescriptor(
                name=name,
                kind=kind,
                meta_excluded=reserved or modality == "hidden",
                transport_reserved=reserved,
                is_email=modality == "email",
                block_id=members[0].block,
                options=options,
                default=default,
            )
        )
    logger.info("schema_classified fields=%s", len(descriptors))
    return descriptors


class FieldRegistry:
    """Validated name -> descriptor index over a FieldStore."""

    def __init__(self, descriptors: Iterable[FieldDescriptor], store: Optional[FieldStore] = None):
        self._descriptors: Dict[str, FieldDescriptor] = {}
        for d in descriptors:
            self._descriptors[d.name] = d
        self._store: FieldStore = store if store is not None else InMemoryFieldStore()
        self.reset_to_defaults()

    @classmethod
    def from_schema(cls, schema: FormSchema, store: Optional[FieldStore] = None) -> "FieldRegistry":
        return cls(classify(schema), store)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def names(self) -> List[str]:
        return list(self._descriptors)

    def get(self, name: str) -> FieldDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownField(name) from None

    def in_block(self, block_id: str) -> List[FieldDescriptor]:
        return [d for d in self._descriptors.values() if d.block_id == block_id]

    def resolve(self, name: str) -> FieldValue:
        desc = self.get(name)
        value = self._store.resolve(name)
        if value is None and desc.kind is not FieldKind.SINGLE_CHOICE_GROUP:
            return empty_value(desc.kind)
        return value

    def apply(self, name: str, value: object) -> FieldValue:
        """Normalise and store a value; returns the value actually stored.

        Choice groups only keep values that match a declared option, the same
        way setting a radio/checkbox by value leaves non-matching members
        unchecked.
        """
        desc = self.get(name)
        if desc.kind is FieldKind.SINGLE:
            normalized: FieldValue = canonicalize_single(value)
        elif desc.kind is FieldKind.SINGLE_CHOICE_GROUP:
            normalized = None if value is None or value == "" else str(value)
            if normalized is not None and normalized not in desc.options:
                logger.warning("apply_unknown_option field=%s value=%r", name, normalized)
                normalized = None
        else:
            chosen = canonicalize_choices(value)
            unknown = chosen - set(desc.options)
            if unknown:
                logger.warning("apply_unknown_options field=%s values=%s", name, sorted(unknown))
            normalized = frozenset(chosen & set(desc.options))
        self._store.apply(name, normalized)
        return normalized

    def reset(self, name: str) -> None:
        """Reset a field to its empty/unselected value."""
        desc = self.get(name)
        self._store.apply(name, empty_value(desc.kind))

    def reset_to_defaults(self) -> None:
        for desc in self._descriptors.values():
            self._store.apply(desc.name, desc.initial_value())

    def is_filled(self, name: str) -> bool:
        return is_filled(self.get(name).kind, self.resolve(name))

    def values(self) -> Dict[str, FieldValue]:
        return {name: self.resolve(name) for name in self._descriptors}


__all__ = ["FieldDescriptor", "FieldRegistry", "classify"]
