"""Submission workflow state machine.

Draft --submit_requested--> Validating --ok--> AwaitingConfirmation
                                     \\--fail--> Draft
AwaitingConfirmation --confirm--> Confirmed
AwaitingConfirmation --cancel | backdrop_dismiss--> Cancelled, then Draft

Confirmed and Cancelled close one submit attempt. Cancelling returns the
workflow to Draft with every value intact; only an explicit user action
gets there, never a timeout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional
import logging

from barometer.logic.clock import SessionClock
from barometer.logic.errors import InvalidTransition, UnknownField, ValidationFailed
from barometer.logic.field_registry import FieldRegistry
from barometer.logic.notifications import DANGER, WARNING, Notifier
from barometer.logic.summary import Summary, generate_summary
from barometer.logic.transport import TransportSink, build_transport_record
from barometer.logic.validation import validate_submission
from barometer.models.visibility import VisibilitySet


logger = logging.getLogger(__name__)

CORRECT_ERRORS_MESSAGE = "Please correct the errors before sending"
DELIVERY_FAILED_MESSAGE = "The submission could not be delivered"


class SubmissionState(str, Enum):
    DRAFT = "draft"
    VALIDATING = "validating"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass
class SubmissionRules:
    emotional_fields: List[str] = field(default_factory=list)
    min_emotional_signals: int = 2
    duration_field: Optional[str] = None
    topics: Mapping[str, List[str]] = field(default_factory=dict)


@dataclass
class SubmitOutcome:
    state: SubmissionState
    field_errors: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    summary: Optional[Summary] = None
    duration_minutes: Optional[int] = None


@dataclass
class ConfirmOutcome:
    state: SubmissionState
    delivered: bool
    record: Dict[str, object] = field(default_factory=dict)


class SubmissionWorkflow:
    def __init__(
        self,
        registry: FieldRegistry,
        visibility: Callable[[], VisibilitySet],
        rules: SubmissionRules,
        clock: SessionClock,
        notifier: Notifier,
        transport: TransportSink,
        on_confirmed: Optional[Callable[[], None]] = None,
    ):
        self.registry = registry
        self._visibility = visibility
        self.rules = rules
        self.clock = clock
        self.notifier = notifier
        self.transport = transport
        self._on_confirmed = on_confirmed
        self.state = SubmissionState.DRAFT
        self.summary: Optional[Summary] = None
        # True while a confirmed record is out with the transport
        self.sending = False
        # Closed attempts, oldest first
        self.history: List[SubmissionState] = []

    def _require(self, trigger: str, *allowed: SubmissionState) -> None:
        if self.sending or self.state not in allowed:
            raise InvalidTransition(self.state.value, trigger)

    def _move(self, new_state: SubmissionState) -> None:
        logger.info("submission_transition from=%s to=%s", self.state.value, new_state.value)
        self.state = new_state

    def submit_requested(self) -> SubmitOutcome:
        self._require("submit_requested", SubmissionState.DRAFT)
        self._move(SubmissionState.VALIDATING)
        visibility = self._visibility()
        try:
            validate_submission(
                self.registry,
                visibility,
                self.rules.emotional_fields,
                self.rules.min_emotional_signals,
            )
        except ValidationFailed as e:
            for warning in e.warnings:
                self.notifier.notify(warning, WARNING)
            self.notifier.notify(CORRECT_ERRORS_MESSAGE, DANGER)
            self._move(SubmissionState.DRAFT)
            return SubmitOutcome(
                state=self.state,
                field_errors=e.field_errors,
                warnings=e.warnings,
            )

        minutes = self.clock.elapsed_minutes()
        self._write_duration(minutes)
        self.summary = generate_summary(self.registry, visibility, self.rules.topics)
        self._move(SubmissionState.AWAITING_CONFIRMATION)
        return SubmitOutcome(state=self.state, summary=self.summary, duration_minutes=minutes)

    def _write_duration(self, minutes: int) -> None:
        name = self.rules.duration_field
        if not name:
            return
        try:
            self.registry.apply(name, str(minutes))
        except UnknownField:
            logger.warning("duration_field_missing name=%s", name)

    async def confirm(self) -> ConfirmOutcome:
        self._require("confirm", SubmissionState.AWAITING_CONFIRMATION)
        record = build_transport_record(self.registry)
        self.sending = True
        try:
            delivered = await self.transport.send(record)
        finally:
            self.sending = False
        if not delivered:
            self.notifier.notify(DELIVERY_FAILED_MESSAGE, DANGER)
        if self._on_confirmed is not None:
            self._on_confirmed()
        self._move(SubmissionState.CONFIRMED)
        self.history.append(SubmissionState.CONFIRMED)
        self.summary = None
        return ConfirmOutcome(state=self.state, delivered=delivered, record=dict(record))

    def cancel(self) -> SubmissionState:
        self._require("cancel", SubmissionState.AWAITING_CONFIRMATION)
        return self._close_cancelled()

    def backdrop_dismiss(self) -> SubmissionState:
        self._require("backdrop_dismiss", SubmissionState.AWAITING_CONFIRMATION)
        return self._close_cancelled()

    def _close_cancelled(self) -> SubmissionState:
        self._move(SubmissionState.CANCELLED)
        self.history.append(SubmissionState.CANCELLED)
        self.summary = None
        self._move(SubmissionState.DRAFT)
        return self.state

    def reopen(self) -> None:
        """Start over after data was cleared; any open attempt is dropped."""
        if self.state is not SubmissionState.DRAFT:
            self._move(SubmissionState.DRAFT)
        self.summary = None

    @property
    def last_outcome(self) -> Optional[SubmissionState]:
        return self.history[-1] if self.history else None


__all__ = [
    "SubmissionState",
    "SubmissionRules",
    "SubmitOutcome",
    "ConfirmOutcome",
    "SubmissionWorkflow",
    "CORRECT_ERRORS_MESSAGE",
    "DELIVERY_FAILED_MESSAGE",
]
