"""Form session engine.

FormSession wires the registry, condition evaluator, snapshot codec,
persistence scheduler, progress calculator and submission workflow for one
form-filling session. Ambient collaborators (clock, scheduler, storage,
notifier, transport) arrive through an explicit SessionContext instead of
module globals, and the session has an init()/dispose() lifecycle.

Data flow on edit: apply -> recompute visibility (trigger fields and fields in
a hidden block) ->
mark dirty and debounce a write -> recompute progress.
Data flow on init: defaults -> restore snapshot -> recompute visibility ->
compute progress -> start the interval timer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from barometer.logic import progress as progress_calc
from barometer.logic import snapshot_codec
from barometer.logic.answer_canonical import FieldValue, ordered_choices
from barometer.logic.clock import SessionClock
from barometer.logic.defaults import apply_datetime_defaults
from barometer.logic.errors import CorruptSnapshot, InvalidTransition, ReservedField, StorageError
from barometer.logic.field_registry import FieldRegistry
from barometer.logic.field_store import FieldStore
from barometer.logic.notifications import INFO, BufferedNotifier, Notifier
from barometer.logic.persistence import DEFAULT_DEBOUNCE_MS, DEFAULT_INTERVAL_MS, PersistenceScheduler
from barometer.logic.scheduling import Scheduler
from barometer.logic.storage import StorageSink
from barometer.logic.submission import (
    ConfirmOutcome,
    SubmissionRules,
    SubmissionState,
    SubmissionWorkflow,
    SubmitOutcome,
)
from barometer.logic.transport import LoggingTransportSink, TransportSink
from barometer.logic.visibility_rules import ConditionEvaluator
from barometer.models.field_kind import FieldKind
from barometer.models.form_schema import FormSchema
from barometer.models.snapshot import Snapshot
from barometer.models.visibility import VisibilityDelta, VisibilitySet


logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "facilo_rapido_journal"
START_TIME_KEY = "facilo_rapido_start_time"
THEME_KEY = "facilo_rapido_theme"

RESTORED_MESSAGE = "Previous data restored"


@dataclass
class SessionContext:
    storage: StorageSink
    scheduler: Scheduler
    clock: SessionClock = field(default_factory=SessionClock)
    notifier: Notifier = field(default_factory=BufferedNotifier)
    transport: TransportSink = field(default_factory=LoggingTransportSink)
    snapshot_key: str = SNAPSHOT_KEY
    start_time_key: str = START_TIME_KEY
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    autosave_interval_ms: int = DEFAULT_INTERVAL_MS


@dataclass
class FieldChange:
    name: str
    value: FieldValue
    delta: VisibilityDelta
    progress: progress_calc.Progress


class FormSession:
    def __init__(
        self,
        schema: FormSchema,
        context: SessionContext,
        store: Optional[FieldStore] = None,
        evaluator: Optional[ConditionEvaluator] = None,
    ):
        self.schema = schema
        self.context = context
        self.registry = FieldRegistry.from_schema(schema, store)
        if evaluator is None:
            evaluator = ConditionEvaluator.from_schema(schema)
            evaluator.check_triggers(self.registry)
        self.evaluator = evaluator
        self.visibility: VisibilitySet = {}
        self.progress = progress_calc.Progress(filled=0, total=0, percentage=0)
        self.persistence = PersistenceScheduler(
            storage=context.storage,
            scheduler=context.scheduler,
            snapshot_source=self.encode_snapshot,
            notifier=context.notifier,
            snapshot_key=context.snapshot_key,
            start_time_key=context.start_time_key,
            debounce_ms=context.debounce_ms,
            interval_ms=context.autosave_interval_ms,
        )
        self.workflow = SubmissionWorkflow(
            registry=self.registry,
            visibility=lambda: self.visibility,
            rules=SubmissionRules(
                emotional_fields=list(schema.emotional_fields),
                min_emotional_signals=schema.min_emotional_signals,
                duration_field=schema.duration_field,
                topics=dict(schema.topics),
            ),
            clock=context.clock,
            notifier=context.notifier,
            transport=context.transport,
            on_confirmed=self._forget_persisted,
        )
        self.opened = False
        self.disposed = False

    # -- lifecycle -----------------------------------------------------

    def init(self) -> bool:
        """Open the session; returns True when a prior snapshot was restored."""
        if self.opened:
            return False
        self._apply_defaults()
        restored = self._restore()
        self._recompute()
        self._write_start_time()
        self.persistence.start()
        self.opened = True
        if restored:
            self.context.notifier.notify(RESTORED_MESSAGE, INFO)
        logger.info(
            "session_opened restored=%s progress=%s/%s",
            restored,
            self.progress.filled,
            self.progress.total,
        )
        return restored

    def dispose(self) -> bool:
        """Teardown: final synchronous write when dirty, timers stopped."""
        if self.disposed:
            return True
        ok = self.persistence.teardown()
        self.disposed = True
        logger.info("session_disposed saved=%s", ok)
        return ok

    # -- field edits ---------------------------------------------------

    def set_field(self, name: str, value: Any) -> FieldChange:
        if self.workflow.state is not SubmissionState.DRAFT:
            raise InvalidTransition(self.workflow.state.value, "edit")
        if self.registry.get(name).transport_reserved:
            raise ReservedField(name)
        self.registry.apply(name, value)
        delta = VisibilityDelta()
        if self.evaluator.is_trigger(name) or not self._in_visible_block(name):
            delta = self._recompute()
        else:
            self._update_progress()
        self.persistence.mark_dirty()
        # Re-read: clear-on-hide may have reset the field that was just set
        return FieldChange(name=name, value=self.registry.resolve(name), delta=delta, progress=self.progress)

    # -- submission ----------------------------------------------------

    def submit(self) -> SubmitOutcome:
        return self.workflow.submit_requested()

    async def confirm(self) -> ConfirmOutcome:
        return await self.workflow.confirm()

    def cancel(self) -> SubmissionState:
        return self.workflow.cancel()

    def dismiss(self) -> SubmissionState:
        return self.workflow.backdrop_dismiss()

    def clear_all_data(self) -> None:
        """Forget persisted data and start a fresh session in place."""
        self._forget_persisted()
        self.registry.reset_to_defaults()
        self.context.clock.restart()
        self._apply_defaults()
        self.workflow.reopen()
        self._recompute()
        logger.info("session_cleared")

    # -- internals -----------------------------------------------------

    def encode_snapshot(self) -> Snapshot:
        return snapshot_codec.encode(self.registry, self.visibility, self.context.clock)

    def _apply_defaults(self) -> None:
        now = datetime.fromtimestamp(self.context.clock.now() / 1000)
        apply_datetime_defaults(self.registry, now, self.schema.date_field, self.schema.time_field)

    def _restore(self) -> bool:
        storage = self.context.storage
        try:
            raw = storage.get(self.context.snapshot_key)
            stored_start = storage.get(self.context.start_time_key)
        except StorageError:
            logger.error("snapshot_read_failed key=%s", self.context.snapshot_key, exc_info=True)
            return False
        if raw:
            try:
                snapshot = snapshot_codec.decode_text(raw, self.registry)
            except CorruptSnapshot:
                logger.error("snapshot_restore_failed key=%s", self.context.snapshot_key, exc_info=True)
            else:
                if snapshot.session_start is not None:
                    self.context.clock.restore(snapshot.session_start)
                return True
        if stored_start:
            try:
                self.context.clock.restore(int(stored_start))
            except ValueError:
                logger.warning("start_time_unreadable value=%r", stored_start)
        return False

    def _write_start_time(self) -> None:
        try:
            self.context.storage.set(self.context.start_time_key, str(self.context.clock.session_start))
        except StorageError:
            logger.warning("start_time_write_failed key=%s", self.context.start_time_key, exc_info=True)

    def _forget_persisted(self) -> None:
        for key in (self.context.snapshot_key, self.context.start_time_key):
            try:
                self.context.storage.remove(key)
            except StorageError:
                logger.error("storage_remove_failed key=%s", key, exc_info=True)
        self.persistence.mark_clean()

    def _recompute(self) -> VisibilityDelta:
        self.visibility, delta = self.evaluator.apply(self.registry, self.visibility or None)
        self._update_progress()
        return delta

    def _in_visible_block(self, name: str) -> bool:
        block_id = self.registry.get(name).block_id
        return block_id is None or self.visibility.get(block_id, True)

    def _update_progress(self) -> None:
        self.progress = progress_calc.compute(self.registry, self.visibility)

    # -- views ---------------------------------------------------------

    def values(self) -> Dict[str, Any]:
        """JSON-friendly field values; multi-choice sets become ordered lists."""
        out: Dict[str, Any] = {}
        for desc in self.registry:
            value = self.registry.resolve(desc.name)
            if desc.kind is FieldKind.MULTI_CHOICE_GROUP:
                out[desc.name] = ordered_choices(value, desc.options)  # type: ignore[arg-type]
            else:
                out[desc.name] = value
        return out


__all__ = [
    "SNAPSHOT_KEY",
    "START_TIME_KEY",
    "THEME_KEY",
    "RESTORED_MESSAGE",
    "SessionContext",
    "FieldChange",
    "FormSession",
]
