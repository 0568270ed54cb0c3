"""Progress over visible, non-meta fields."""

from __future__ import annotations

import pytest

from barometer.logic import progress as progress_calc
from barometer.logic.field_registry import FieldRegistry
from barometer.logic.schema_loader import parse_schema


@pytest.fixture
def registry(schema):
    return FieldRegistry.from_schema(schema)


def test_counts_each_group_once_and_skips_meta(registry):
    registry.apply("Energy", "2")
    registry.apply("Tags", ["calm", "busy"])
    result = progress_calc.compute(registry, {"reason_block": False, "notes_block": True})

    # Day, Email, Mood, Energy, Feeling, Tags, Notes
    assert result.total == 7
    assert result.filled == 2
    assert result.percentage == 29


def test_whitespace_only_text_is_not_filled(registry):
    registry.apply("Feeling", "   ")
    result = progress_calc.compute(registry, {"reason_block": False})
    assert result.filled == 0


def test_zero_total_gives_zero_percent():
    registry = FieldRegistry.from_schema(parse_schema("elements: [{name: _meta, type: hidden}]"))
    result = progress_calc.compute(registry, {})
    assert (result.filled, result.total, result.percentage) == (0, 0, 0)


def test_half_rounds_up():
    assert progress_calc.round_half_up_percent(1, 8) == 13
    assert progress_calc.round_half_up_percent(1, 3) == 33
    assert progress_calc.round_half_up_percent(2, 3) == 67
    assert progress_calc.round_half_up_percent(8, 8) == 100


def test_every_block_visible_counts_all_non_meta_fields(registry):
    result = progress_calc.compute(registry, {"reason_block": True, "notes_block": True})
    assert result.total == 9


def test_hiding_block_with_only_unfilled_field_raises_percentage(session):
    for name, value in [("Email", "a@b.co"), ("Energy", "1"), ("Feeling", "ok"), ("Tags", ["calm"]), ("Notes", "n")]:
        session.set_field(name, value)
    session.set_field("Mood", "Bad")
    session.set_field("Triggers", ["Work"])
    before = session.progress
    assert before.total == 9 and before.filled == 8  # Reason unfilled

    session.set_field("Mood", "Good")
    after = session.progress
    # Reason and the filled Triggers leave both counts
    assert after.total == 7
    assert after.filled == 7
    assert after.percentage == 100 >= before.percentage


def test_mood_reason_scenario(session):
    session.set_field("Mood", "Good")
    assert session.visibility["reason_block"] is False
    assert session.registry.resolve("Reason") == ""
    total_without_reason = session.progress.total

    session.set_field("Mood", "Bad")
    session.set_field("Reason", "tired")
    assert session.progress.total == total_without_reason + 2  # Reason and Triggers
    names = [d.name for d in progress_calc.relevant_fields(session.registry, session.visibility)]
    assert "Reason" in names
    assert session.registry.is_filled("Reason")


def test_percentage_bounds_over_many_assignments(registry):
    for filled_count in range(0, 4):
        names = ["Feeling", "Email", "Notes"][:filled_count]
        for n in names:
            registry.apply(n, "v")
        for vis in ({}, {"reason_block": True}, {"notes_block": False}):
            result = progress_calc.compute(registry, vis)
            assert 0 <= result.percentage <= 100
