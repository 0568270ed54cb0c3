"""Visibility rule evaluation for conditional blocks.

A block is visible iff its trigger field's resolved value equals the rule's
required value exactly. Only single-choice (radio) triggers ever resolve to
a comparable value. Rules are evaluated against the raw resolved value of
the trigger, independent of whether the trigger's own container is hidden;
nested conditionals are not otherwise modelled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
import logging

from barometer.logic.answer_canonical import empty_value
from barometer.logic.errors import UnknownField
from barometer.logic.field_registry import FieldRegistry
from barometer.logic.visibility_delta import compute_visibility_delta
from barometer.models.field_kind import FieldKind
from barometer.models.form_schema import FormSchema
from barometer.models.visibility import VisibilityDelta, VisibilitySet


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConditionRule:
    block_id: str
    trigger_field_name: str
    required_value: str

    @classmethod
    def parse(cls, block_id: str, show_when: str) -> "ConditionRule":
        """Parse "<field>:<value>", splitting on the first colon only."""
        field_name, sep, wanted = show_when.partition(":")
        if not sep or not field_name:
            raise ValueError(f"block {block_id!r}: show_when must look like 'field:value'")
        return cls(block_id=block_id, trigger_field_name=field_name, required_value=wanted)


def rules_from_schema(schema: FormSchema) -> Tuple[List[ConditionRule], List[str]]:
    """Return (rules, all block ids) in declaration order."""
    rules: List[ConditionRule] = []
    for block in schema.blocks:
        if block.show_when:
            rules.append(ConditionRule.parse(block.id, block.show_when))
    return rules, [b.id for b in schema.blocks]


def trigger_value(registry: FieldRegistry, field_name: str) -> Optional[str]:
    """Resolved comparable value of a trigger field, or None."""
    try:
        desc = registry.get(field_name)
    except UnknownField:
        return None
    if desc.kind is not FieldKind.SINGLE_CHOICE_GROUP:
        return None
    value = registry.resolve(field_name)
    return value if isinstance(value, str) else None


def recompute_all(
    rules: Iterable[ConditionRule],
    block_ids: Iterable[str],
    registry: FieldRegistry,
) -> VisibilitySet:
    """Compute the full VisibilitySet from current field values.

    Pure: no field is modified. Blocks without a rule are always visible.
    """
    visibility: VisibilitySet = {bid: True for bid in block_ids}
    for rule in rules:
        current = trigger_value(registry, rule.trigger_field_name)
        visibility[rule.block_id] = current is not None and current == rule.required_value
    return visibility


class ConditionEvaluator:
    """Recomputes visibility and enforces clear-on-hide."""

    def __init__(self, rules: Iterable[ConditionRule], block_ids: Iterable[str]):
        self.rules: List[ConditionRule] = list(rules)
        self.block_ids: List[str] = list(block_ids)
        for r in self.rules:
            if r.block_id not in self.block_ids:
                self.block_ids.append(r.block_id)
        self.trigger_names = frozenset(r.trigger_field_name for r in self.rules)

    @classmethod
    def from_schema(cls, schema: FormSchema) -> "ConditionEvaluator":
        rules, block_ids = rules_from_schema(schema)
        return cls(rules, block_ids)

    def check_triggers(self, registry: FieldRegistry) -> List[str]:
        """Log rules whose trigger can never match; returns their block ids."""
        broken: List[str] = []
        for rule in self.rules:
            if rule.trigger_field_name not in registry:
                logger.warning(
                    "condition_trigger_unknown block=%s trigger=%s", rule.block_id, rule.trigger_field_name
                )
                broken.append(rule.block_id)
            elif registry.get(rule.trigger_field_name).kind is not FieldKind.SINGLE_CHOICE_GROUP:
                logger.warning(
                    "condition_trigger_not_single_choice block=%s trigger=%s",
                    rule.block_id,
                    rule.trigger_field_name,
                )
                broken.append(rule.block_id)
        return broken

    def is_trigger(self, field_name: str) -> bool:
        return field_name in self.trigger_names

    def recompute(self, registry: FieldRegistry) -> VisibilitySet:
        return recompute_all(self.rules, self.block_ids, registry)

    def apply(
        self,
        registry: FieldRegistry,
        previous: Optional[VisibilitySet] = None,
    ) -> Tuple[VisibilitySet, VisibilityDelta]:
        """Recompute visibility and reset every non-empty field of a hidden block.

        Clearing is applied to all hidden blocks, not only transitions, so a
        restored value inside an already-hidden block is dropped as well.
        Resetting a trigger that sits in a hidden block may hide further
        blocks, so evaluation repeats until nothing else is cleared.
        """
        cleared: List[str] = []
        while True:
            visibility = self.recompute(registry)
            newly = self._clear_hidden(registry, visibility)
            if not newly:
                break
            cleared.extend(newly)
        delta = compute_visibility_delta(previous, visibility, cleared)
        if delta.now_hidden or delta.now_visible or cleared:
            logger.info(
                "visibility_recomputed now_visible=%s now_hidden=%s cleared=%s",
                delta.now_visible,
                delta.now_hidden,
                cleared,
            )
        return visibility, delta

    @staticmethod
    def _clear_hidden(registry: FieldRegistry, visibility: VisibilitySet) -> List[str]:
        cleared: List[str] = []
        for block_id, visible in visibility.items():
            if visible:
                continue
            for desc in registry.in_block(block_id):
                if registry.resolve(desc.name) != empty_value(desc.kind):
                    registry.reset(desc.name)
                    cleared.append(desc.name)
        return cleared


__all__ = [
    "ConditionRule",
    "ConditionEvaluator",
    "recompute_all",
    "rules_from_schema",
    "trigger_value",
]
