"""Snapshot codec: field values <-> persisted snapshot record.

Pure data transform. Encoding does not filter by visibility (callers that
need visible-only views filter themselves); transport-reserved names are
never written and never restored.
"""

from __future__ import annotations

from typing import Dict, Optional
import json
import logging

from pydantic import ValidationError as PydanticValidationError

from barometer.logic.answer_canonical import ordered_choices
from barometer.logic.clock import SessionClock
from barometer.logic.errors import CorruptSnapshot
from barometer.logic.field_registry import FieldRegistry
from barometer.models.field_kind import FieldKind
from barometer.models.snapshot import Snapshot, SnapshotValue
from barometer.models.visibility import VisibilitySet


logger = logging.getLogger(__name__)


def encode(
    registry: FieldRegistry,
    visibility: Optional[VisibilitySet],
    session_clock: SessionClock,
) -> Snapshot:
    """Capture every persistable field value.

    - Single: always written, empty string included
    - SingleChoiceGroup: written only when a selection exists
    - MultiChoiceGroup: written only when non-empty, as a list in option order

    `visibility` is accepted so callers hand over the state they hold, but
    it does not affect what is written.
    """
    fields: Dict[str, SnapshotValue] = {}
    for desc in registry:
        if desc.transport_reserved:
            continue
        value = registry.resolve(desc.name)
        if desc.kind is FieldKind.SINGLE:
            fields[desc.name] = value if isinstance(value, str) else ""
        elif desc.kind is FieldKind.SINGLE_CHOICE_GROUP:
            if value is not None:
                fields[desc.name] = str(value)
        elif value:
            fields[desc.name] = ordered_choices(value, desc.options)  # type: ignore[arg-type]
    return Snapshot(
        captured_at=session_clock.now(),
        session_start=session_clock.session_start,
        fields=fields,
    )


def parse(raw: str) -> Snapshot:
    """Parse persisted JSON into a Snapshot or raise CorruptSnapshot."""
    try:
        return Snapshot.model_validate_json(raw)
    except (PydanticValidationError, json.JSONDecodeError, ValueError, TypeError) as e:
        raise CorruptSnapshot(f"snapshot could not be parsed: {e}") from e


_SCALARS = (str, int, float, bool)


def decode(snapshot: Snapshot, registry: FieldRegistry) -> Dict[str, object]:
    """Apply snapshot values back through the registry.

    Returns the mapping of field name -> stored value for every field that
    was applied. Unknown names are ignored; a scalar is accepted for a
    multi-choice group as a one-element set, and a bare number for a text
    field. Values of the wrong shape are logged and skipped one by one.
    """
    applied: Dict[str, object] = {}
    for name, value in snapshot.fields.items():
        if name not in registry:
            logger.debug("snapshot_field_unknown name=%s", name)
            continue
        desc = registry.get(name)
        if desc.transport_reserved:
            continue
        if value is not None and not isinstance(value, (list,) + _SCALARS):
            logger.warning("snapshot_field_shape_mismatch name=%s got=%s", name, type(value).__name__)
            continue
        if isinstance(value, list):
            if not all(isinstance(v, _SCALARS) for v in value):
                logger.warning("snapshot_field_shape_mismatch name=%s expected=flat_list", name)
                continue
            if desc.kind is FieldKind.SINGLE:
                logger.warning("snapshot_field_shape_mismatch name=%s expected=scalar", name)
                continue
            if desc.kind is FieldKind.SINGLE_CHOICE_GROUP:
                if len(value) != 1:
                    logger.warning("snapshot_field_shape_mismatch name=%s expected=one_value", name)
                    continue
                value = value[0]
        applied[name] = registry.apply(name, value)
    return applied


def decode_text(raw: str, registry: FieldRegistry) -> Snapshot:
    """Parse then apply; nothing is applied when the data is corrupt."""
    snapshot = parse(raw)
    decode(snapshot, registry)
    return snapshot


__all__ = ["encode", "parse", "decode", "decode_text"]
