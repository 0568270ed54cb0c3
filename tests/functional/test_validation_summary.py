"""Submission checks and the grouped summary."""

from __future__ import annotations

import pytest

from barometer.logic.errors import ValidationFailed
from barometer.logic.field_registry import FieldRegistry
from barometer.logic.summary import NO_DATA_MESSAGE, generate_summary
from barometer.logic.validation import (
    EMAIL_ERROR,
    EMOTIONAL_WARNING,
    count_emotional_signals,
    is_valid_email,
    validate_submission,
)


@pytest.fixture
def registry(schema):
    return FieldRegistry.from_schema(schema)


@pytest.mark.parametrize(
    "value,ok",
    [
        ("me@example.org", True),
        ("  me@example.org  ", True),
        ("not-an-email", False),
        ("a@b", False),
        ("a b@c.de", False),
        ("", False),
    ],
)
def test_email_shape(value, ok):
    assert is_valid_email(value) is ok


def test_both_checks_fail_together(registry):
    registry.apply("Email", "not-an-email")
    registry.apply("Feeling", "sad")
    with pytest.raises(ValidationFailed) as exc:
        validate_submission(registry, {}, ["Mood", "Energy", "Feeling"], 2)
    assert exc.value.field_errors == {"Email": EMAIL_ERROR}
    assert exc.value.warnings == [EMOTIONAL_WARNING]


def test_passes_with_valid_email_and_two_signals(registry):
    registry.apply("Email", "me@example.org")
    registry.apply("Mood", "Good")
    registry.apply("Energy", "3")
    validate_submission(registry, {}, ["Mood", "Energy", "Feeling"], 2)


def test_hidden_fields_do_not_count_as_signals(registry):
    registry.apply("Reason", "x")
    assert count_emotional_signals(registry, {"reason_block": False}, ["Reason"]) == 0
    assert count_emotional_signals(registry, {"reason_block": True}, ["Reason"]) == 1


def test_summary_groups_by_topic_and_omits_empty_topics(registry, schema):
    registry.apply("Mood", "Bad")
    registry.apply("Feeling", "  low  ")
    registry.apply("Tags", ["busy", "calm"])

    summary = generate_summary(registry, {"reason_block": True, "notes_block": True}, schema.topics)

    assert [s.title for s in summary.sections] == ["General", "Extra"]
    general = {i.field: i.value for i in summary.sections[0].items}
    assert general == {"Mood": "Bad", "Feeling": "low"}
    assert summary.sections[1].items[0].value == "calm, busy"
    assert "General\n  Mood: Bad" in summary.render_text()


def test_summary_skips_hidden_blocks(registry, schema):
    registry.apply("Reason", "stale")
    summary = generate_summary(registry, {"reason_block": False}, schema.topics)
    assert summary.is_empty
    assert summary.render_text() == NO_DATA_MESSAGE
