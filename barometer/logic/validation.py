"""Submission-readiness checks.

Runs against currently visible fields only:
1. every visible email-typed field must look like local@domain.tld
2. at least `min_signals` of the emotional signal fields must be filled
Raises ValidationFailed carrying per-field errors and banner warnings.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping
import re

from barometer.logic.errors import ValidationFailed
from barometer.logic.field_registry import FieldRegistry


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

EMAIL_ERROR = "Please enter a valid email address"
EMOTIONAL_WARNING = "Please fill in at least a few emotional data fields"


def is_valid_email(value: object) -> bool:
    text = value.strip() if isinstance(value, str) else ""
    return bool(text) and EMAIL_RE.match(text) is not None


def _visible(registry: FieldRegistry, name: str, visibility: Mapping[str, bool]) -> bool:
    desc = registry.get(name)
    return desc.block_id is None or visibility.get(desc.block_id, True)


def email_errors(registry: FieldRegistry, visibility: Mapping[str, bool]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for desc in registry:
        if not desc.is_email or not _visible(registry, desc.name, visibility):
            continue
        if not is_valid_email(registry.resolve(desc.name)):
            errors[desc.name] = EMAIL_ERROR
    return errors


def count_emotional_signals(
    registry: FieldRegistry,
    visibility: Mapping[str, bool],
    emotional_fields: Iterable[str],
) -> int:
    count = 0
    for name in emotional_fields:
        if name not in registry:
            continue
        if _visible(registry, name, visibility) and registry.is_filled(name):
            count += 1
    return count


def validate_submission(
    registry: FieldRegistry,
    visibility: Mapping[str, bool],
    emotional_fields: Iterable[str],
    min_signals: int = 2,
) -> None:
    field_errors = email_errors(registry, visibility)
    warnings: List[str] = []
    if count_emotional_signals(registry, visibility, emotional_fields) < min_signals:
        warnings.append(EMOTIONAL_WARNING)
    if field_errors or warnings:
        raise ValidationFailed(field_errors=field_errors, warnings=warnings)


__all__ = [
    "EMAIL_RE",
    "EMAIL_ERROR",
    "EMOTIONAL_WARNING",
    "is_valid_email",
    "email_errors",
    "count_emotional_signals",
    "validate_submission",
]
