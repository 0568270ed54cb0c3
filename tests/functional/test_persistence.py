"""Debounced, interval and teardown writes on virtual time."""

from __future__ import annotations

import json

import pytest

from barometer.logic.errors import StorageError
from barometer.logic.session import SNAPSHOT_KEY, START_TIME_KEY, FormSession
from barometer.logic.storage import InMemoryStorage


def _stored_fields(storage):
    return json.loads(storage.get(SNAPSHOT_KEY))["fields"]


def test_rapid_edits_produce_one_write_with_last_value(session, scheduler, storage):
    session.set_field("Feeling", "meh")
    scheduler.advance(300)
    session.set_field("Feeling", "better")
    scheduler.advance(499)
    assert storage.get(SNAPSHOT_KEY) is None

    scheduler.advance(1)
    assert session.persistence.writes == 1
    assert _stored_fields(storage)["Feeling"] == "better"
    assert session.persistence.dirty is False


def test_interval_writes_only_when_dirty(session, scheduler):
    scheduler.advance(30_000)
    assert session.persistence.writes == 0

    session.set_field("Feeling", "ok")
    scheduler.advance(500)
    assert session.persistence.writes == 1
    # debounce already persisted; the interval tick has nothing to do
    scheduler.advance(30_000)
    assert session.persistence.writes == 1


def test_interval_write_supersedes_pending_debounce(schema, context, scheduler, notifier):
    context.debounce_ms = 10_000
    s = FormSession(schema, context)
    s.init()
    scheduler.advance(25_000)
    s.set_field("Feeling", "ok")
    scheduler.advance(5_000)  # interval fires at 30s
    assert s.persistence.writes == 1
    assert {"message": "Saved", "severity": "info"} in notifier.drain()
    scheduler.advance(10_000)  # debounce would have fired here
    assert s.persistence.writes == 1
    s.dispose()


def test_teardown_writes_synchronously_when_dirty(session, storage):
    session.set_field("Feeling", "last words")
    assert storage.get(SNAPSHOT_KEY) is None

    assert session.dispose() is True
    assert _stored_fields(storage)["Feeling"] == "last words"


def test_teardown_skips_write_when_clean(session, storage):
    session.dispose()
    assert storage.get(SNAPSHOT_KEY) is None
    assert storage.get(START_TIME_KEY) is not None


def test_teardown_cancels_timers(session, scheduler):
    session.set_field("Feeling", "x")
    session.dispose()
    assert scheduler.pending() == 0


def test_write_failure_keeps_dirty_and_retries(session, scheduler, storage, notifier):
    notifier.drain()
    storage.available = False
    session.set_field("Feeling", "unsaved")
    scheduler.advance(500)

    assert session.persistence.dirty is True
    assert notifier.drain()[-1]["severity"] == "danger"

    storage.available = True
    scheduler.advance(30_000)
    assert session.persistence.dirty is False
    assert _stored_fields(storage)["Feeling"] == "unsaved"


def test_quota_exceeded_is_reported_not_raised(schema, context, storage):
    storage.quota_bytes = 10
    s = FormSession(schema, context)
    s.init()
    s.set_field("Feeling", "x" * 50)
    assert s.persistence.persist_now() is False
    assert s.persistence.dirty is True


def test_in_memory_store_enforces_quota():
    st = InMemoryStorage(quota_bytes=4)
    with pytest.raises(StorageError):
        st.set("key", "value")
