"""The packaged barometer form loads, classifies and wires its rules."""

from __future__ import annotations

from barometer.logic.field_registry import FieldRegistry, classify
from barometer.logic.schema_loader import DEFAULT_SCHEMA_PATH, load_schema
from barometer.logic.visibility_rules import ConditionEvaluator
from barometer.models.field_kind import FieldKind


def test_default_form_is_packaged_and_classifies():
    assert DEFAULT_SCHEMA_PATH.is_file()
    schema = load_schema()

    descriptors = {d.name: d for d in classify(schema)}
    assert descriptors["Anxiété"].kind is FieldKind.SINGLE_CHOICE_GROUP
    assert descriptors["Stratégies utilisées"].kind is FieldKind.MULTI_CHOICE_GROUP
    assert descriptors["Durée de remplissage (min)"].meta_excluded
    assert descriptors["_subject"].transport_reserved


def test_default_form_rules_reference_real_trigger_fields():
    schema = load_schema()
    registry = FieldRegistry.from_schema(schema)
    evaluator = ConditionEvaluator.from_schema(schema)

    assert evaluator.check_triggers(registry) == []
    assert evaluator.recompute(registry) == {
        "anxiety_details": False,
        "physical_details": False,
        "javi_details": False,
        "nathan_details": False,
        "trigger_details": False,
    }


def test_default_form_topics_name_known_fields():
    schema = load_schema()
    registry = FieldRegistry.from_schema(schema)

    assert list(schema.topics)[0] == "État général"
    assert len(schema.topics) == 10
    for names in schema.topics.values():
        assert all(name in registry for name in names)
    for name in schema.emotional_fields:
        assert name in registry
