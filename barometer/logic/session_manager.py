"""Open form sessions held by the service process.

Each client id maps to its own storage namespace, so reopening a session
for the same client restores that client's snapshot. Sessions nobody has
touched for `idle_timeout_ms` are closed by a periodic sweep; closing goes
through the normal teardown write.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import logging
import uuid

from sqlalchemy.engine import Engine

from barometer.config import AppConfig
from barometer.logic.clock import SessionClock, epoch_millis
from barometer.logic.errors import BarometerError
from barometer.logic.field_registry import FieldRegistry
from barometer.logic.notifications import BufferedNotifier
from barometer.logic.scheduling import AsyncioScheduler, RepeatingTask, Scheduler, schedule_every
from barometer.logic.session import FormSession, SessionContext
from barometer.logic.storage import SqlStorage, StorageSink
from barometer.logic.transport import HttpTransportSink, LoggingTransportSink, TransportSink
from barometer.logic.visibility_rules import ConditionEvaluator
from barometer.models.form_schema import FormSchema


logger = logging.getLogger(__name__)


class SessionNotFound(BarometerError, KeyError):
    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"unknown session {self.session_id!r}"


@dataclass
class OpenSession:
    session_id: str
    client_id: str
    session: FormSession
    notifier: BufferedNotifier
    restored: bool
    last_seen: int = 0


class SessionManager:
    def __init__(
        self,
        config: AppConfig,
        schema: FormSchema,
        engine: Engine,
        scheduler: Optional[Scheduler] = None,
        transport: Optional[TransportSink] = None,
        now: Callable[[], int] = epoch_millis,
    ):
        self.config = config
        self.schema = schema
        self.engine = engine
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self.transport: TransportSink = transport or self._default_transport(config)
        self._now = now
        self._sessions: Dict[str, OpenSession] = {}
        self._sweeper: Optional[RepeatingTask] = None
        # Rules are parsed and trigger warnings logged once, at load time
        self.evaluator = ConditionEvaluator.from_schema(schema)
        self.evaluator.check_triggers(FieldRegistry.from_schema(schema))

    @staticmethod
    def _default_transport(config: AppConfig) -> TransportSink:
        if config.transport.url:
            return HttpTransportSink(config.transport.url, timeout=config.transport.timeout_seconds)
        return LoggingTransportSink()

    def storage_for(self, client_id: str) -> StorageSink:
        return SqlStorage(self.engine, namespace=client_id)

    def open(self, client_id: str) -> OpenSession:
        notifier = BufferedNotifier()
        context = SessionContext(
            storage=self.storage_for(client_id),
            scheduler=self.scheduler,
            clock=SessionClock(now=self._now),
            notifier=notifier,
            transport=self.transport,
            snapshot_key=self.config.storage.snapshot_key,
            start_time_key=self.config.storage.start_time_key,
            debounce_ms=self.config.timing.debounce_ms,
            autosave_interval_ms=self.config.timing.autosave_interval_ms,
        )
        session = FormSession(self.schema, context, evaluator=self.evaluator)
        restored = session.init()
        session_id = str(uuid.uuid4())
        entry = OpenSession(session_id, client_id, session, notifier, restored, last_seen=self._now())
        self._sessions[session_id] = entry
        self._start_sweeper()
        logger.info("session_registered id=%s client=%s restored=%s", session_id, client_id, restored)
        return entry

    def get(self, session_id: str) -> OpenSession:
        try:
            entry = self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None
        entry.last_seen = self._now()
        return entry

    def close(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            raise SessionNotFound(session_id)
        return entry.session.dispose()

    def evict_idle(self) -> List[str]:
        """Close every session idle for at least the configured timeout."""
        cutoff = self._now() - self.config.timing.idle_timeout_ms
        idle = [sid for sid, entry in self._sessions.items() if entry.last_seen <= cutoff]
        for session_id in idle:
            saved = self.close(session_id)
            logger.info("session_evicted id=%s saved=%s", session_id, saved)
        return idle

    def _start_sweeper(self) -> None:
        if self._sweeper is None:
            self._sweeper = schedule_every(self.scheduler, self.config.timing.idle_sweep_ms, self.evict_idle)

    def close_all(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None
        for session_id in list(self._sessions):
            self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["SessionNotFound", "OpenSession", "SessionManager"]
