"""Condition evaluation and clear-on-hide behaviour."""

from __future__ import annotations

import pytest

from barometer.logic.field_registry import FieldRegistry
from barometer.logic.schema_loader import parse_schema
from barometer.logic.visibility_rules import ConditionEvaluator, ConditionRule, recompute_all


@pytest.fixture
def registry(schema):
    return FieldRegistry.from_schema(schema)


@pytest.fixture
def evaluator(schema):
    return ConditionEvaluator.from_schema(schema)


def test_rule_parse_splits_on_first_colon_only():
    rule = ConditionRule.parse("b", "Time:12:30")
    assert rule.trigger_field_name == "Time"
    assert rule.required_value == "12:30"


def test_rule_parse_rejects_missing_separator():
    with pytest.raises(ValueError):
        ConditionRule.parse("b", "Mood")


def test_blocks_without_rule_are_always_visible(registry, evaluator):
    visibility = evaluator.recompute(registry)
    assert visibility["notes_block"] is True
    # no selection yet -> rule cannot match
    assert visibility["reason_block"] is False


def test_recompute_is_deterministic(registry, evaluator):
    registry.apply("Mood", "Bad")
    first = recompute_all(evaluator.rules, evaluator.block_ids, registry)
    second = recompute_all(evaluator.rules, evaluator.block_ids, registry)
    assert first == second == {"reason_block": True, "notes_block": True}


def test_visible_to_hidden_clears_every_field_in_block(registry, evaluator):
    registry.apply("Mood", "Bad")
    previous, _ = evaluator.apply(registry)
    registry.apply("Reason", "tired")
    registry.apply("Triggers", ["Work"])

    registry.apply("Mood", "Good")
    visibility, delta = evaluator.apply(registry, previous)

    assert visibility["reason_block"] is False
    assert delta.now_hidden == ["reason_block"]
    assert sorted(delta.cleared) == ["Reason", "Triggers"]
    assert registry.resolve("Reason") == ""
    assert registry.resolve("Triggers") == frozenset()


def test_hidden_to_visible_never_populates(registry, evaluator):
    previous, _ = evaluator.apply(registry)
    registry.apply("Mood", "Bad")
    visibility, delta = evaluator.apply(registry, previous)

    assert delta.now_visible == ["reason_block"]
    assert delta.cleared == []
    assert registry.resolve("Reason") == ""


def test_non_radio_trigger_never_matches():
    schema = parse_schema(
        """
blocks: [{id: extra, show_when: "Comment:yes"}]
elements:
  - {name: Comment, type: text}
  - {name: More, type: text, block: extra}
"""
    )
    registry = FieldRegistry.from_schema(schema)
    evaluator = ConditionEvaluator.from_schema(schema)
    assert evaluator.check_triggers(registry) == ["extra"]
    registry.apply("Comment", "yes")
    assert evaluator.recompute(registry)["extra"] is False


def test_trigger_inside_hidden_block_still_drives_rules_until_cleared():
    schema = parse_schema(
        """
blocks:
  - {id: outer, show_when: "A:yes"}
  - {id: inner, show_when: "B:yes"}
elements:
  - {name: A, type: radio, options: ["yes", "no"]}
  - {name: B, type: radio, block: outer, options: ["yes", "no"]}
  - {name: C, type: text, block: inner}
"""
    )
    registry = FieldRegistry.from_schema(schema)
    evaluator = ConditionEvaluator.from_schema(schema)
    registry.apply("A", "yes")
    registry.apply("B", "yes")
    registry.apply("C", "deep")
    # Rules read raw values regardless of the trigger's own container
    assert evaluator.recompute(registry) == {"outer": True, "inner": True}

    registry.apply("A", "no")
    # Pure recompute: B still selected, so inner stays visible
    assert evaluator.recompute(registry)["inner"] is True
    # Clear-on-hide resets B, which in turn hides inner and clears C
    visibility, delta = evaluator.apply(registry, {"outer": True, "inner": True})
    assert visibility == {"outer": False, "inner": False}
    assert delta.cleared == ["B", "C"]
    assert registry.resolve("C") == ""
