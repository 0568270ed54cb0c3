"""Shared fixtures for functional tests.

Builds a small mood-journal schema plus a session wired to in-memory
storage and a manual scheduler, so timer behaviour runs on virtual time.
"""

from __future__ import annotations

import pytest

from barometer.logic.clock import SessionClock
from barometer.logic.notifications import BufferedNotifier
from barometer.logic.scheduling import ManualScheduler
from barometer.logic.schema_loader import parse_schema
from barometer.logic.session import FormSession, SessionContext
from barometer.logic.storage import InMemoryStorage
from barometer.logic.transport import LoggingTransportSink


START_MS = 1_700_000_000_000

MOOD_SCHEMA_YAML = """
title: Mood journal
reserved_prefix: "_"
duration_field: Duration
date_field: Day
emotional_fields: [Mood, Energy, Feeling]
min_emotional_signals: 2
blocks:
  - id: reason_block
    show_when: "Mood:Bad"
  - id: notes_block
elements:
  - {name: _subject, type: hidden, value: Journal}
  - {name: Duration, type: hidden}
  - {name: Day, type: date}
  - {name: Email, type: email}
  - {name: Mood, type: radio, options: [Good, Bad]}
  - {name: Reason, type: text, block: reason_block}
  - {name: Triggers, type: checkbox, block: reason_block, options: [Work, Family]}
  - {name: Energy, type: radio, options: ["1", "2", "3"]}
  - {name: Feeling, type: text}
  - {name: Tags, type: checkbox, options: [calm, tired, busy]}
  - {name: Notes, type: textarea, block: notes_block}
topics:
  General: [Mood, Energy, Feeling]
  Context: [Reason, Triggers]
  Extra: [Tags, Notes]
"""


@pytest.fixture
def schema():
    return parse_schema(MOOD_SCHEMA_YAML)


@pytest.fixture
def scheduler():
    return ManualScheduler(start_ms=START_MS)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def notifier():
    return BufferedNotifier()


@pytest.fixture
def transport():
    return LoggingTransportSink()


@pytest.fixture
def context(storage, scheduler, notifier, transport):
    return SessionContext(
        storage=storage,
        scheduler=scheduler,
        clock=SessionClock(now=scheduler.now_millis),
        notifier=notifier,
        transport=transport,
    )


@pytest.fixture
def session(schema, context):
    s = FormSession(schema, context)
    s.init()
    yield s
    s.dispose()
