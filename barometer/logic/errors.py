"""Error kinds raised by the form state engine.

Every engine error derives from BarometerError so the HTTP layer can map
them in one place. None of these are fatal to the process: callers recover
locally (treat the snapshot as absent, keep the dirty flag set, return the
workflow to Draft) and surface the condition via notifications.
"""

from __future__ import annotations

from typing import Dict, List, Optional


class BarometerError(Exception):
    """Base class for engine errors."""


class CorruptSnapshot(BarometerError):
    """Persisted snapshot data could not be parsed."""


class SchemaConflict(BarometerError):
    """The form schema declares one field name with incompatible inputs."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"schema conflict for field {name!r}: {reason}")
        self.name = name
        self.reason = reason


class UnknownField(BarometerError, KeyError):
    """A field name is not present in the registry."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown field {self.name!r}"


class ReservedField(BarometerError):
    """Transport-reserved fields take their schema value and cannot be edited."""

    def __init__(self, name: str):
        super().__init__(f"field {name!r} is reserved for transport metadata")
        self.name = name


class StorageError(BarometerError):
    """The storage sink rejected a read or write."""


class PersistenceWriteFailed(BarometerError):
    """A snapshot write failed; the dirty flag stays set for a retry."""


class ValidationFailed(BarometerError):
    """Submission-readiness checks failed.

    `field_errors` maps field name -> message; `warnings` holds banner-level
    messages that are not tied to a single field.
    """

    def __init__(
        self,
        field_errors: Optional[Dict[str, str]] = None,
        warnings: Optional[List[str]] = None,
    ):
        self.field_errors: Dict[str, str] = dict(field_errors or {})
        self.warnings: List[str] = list(warnings or [])
        super().__init__(
            f"validation failed fields={sorted(self.field_errors)} warnings={len(self.warnings)}"
        )


class InvalidTransition(BarometerError):
    """A workflow trigger arrived in a state that does not accept it."""

    def __init__(self, state: str, trigger: str):
        super().__init__(f"trigger {trigger!r} not allowed in state {state!r}")
        self.state = state
        self.trigger = trigger


__all__ = [
    "BarometerError",
    "CorruptSnapshot",
    "SchemaConflict",
    "UnknownField",
    "ReservedField",
    "StorageError",
    "PersistenceWriteFailed",
    "ValidationFailed",
    "InvalidTransition",
]
