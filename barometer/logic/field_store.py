"""FieldStore capability: where logical field values live.

The engine never touches a rendering surface; it reads and writes values
through this interface. InMemoryFieldStore is the default backing used by
sessions and tests.
"""

from __future__ import annotations

from typing import Dict, Iterator, Protocol

from barometer.logic.answer_canonical import FieldValue


class FieldStore(Protocol):
    def resolve(self, name: str) -> FieldValue: ...

    def apply(self, name: str, value: FieldValue) -> None: ...

    def names(self) -> Iterator[str]: ...


class InMemoryFieldStore:
    """Dict-backed store keyed by field name."""

    def __init__(self) -> None:
        self._values: Dict[str, FieldValue] = {}

    def resolve(self, name: str) -> FieldValue:
        return self._values.get(name)

    def apply(self, name: str, value: FieldValue) -> None:
        self._values[name] = value

    def names(self) -> Iterator[str]:
        return iter(list(self._values))


__all__ = ["FieldStore", "InMemoryFieldStore"]
