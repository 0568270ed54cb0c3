"""Form session endpoints.

Implements:
- POST   /sessions                        open a session for a client
- GET    /sessions/{id}                   values, visibility, progress
- PATCH  /sessions/{id}/fields/{name}     edit one field
- POST   /sessions/{id}/submit|confirm|cancel|dismiss|clear
- DELETE /sessions/{id}                   teardown (final write when dirty)
- GET    /clients/{client_id}/theme, POST /clients/{client_id}/theme/toggle

Handlers are async so timers land on the serving event loop.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response

from barometer.logic.session_manager import OpenSession, SessionManager
from barometer.logic.theme import load_theme, toggle_theme
from barometer.models.response_types import (
    ConfirmView,
    FieldChangeView,
    FieldUpdate,
    Notification,
    OpenSessionRequest,
    ProgressView,
    SessionView,
    StateView,
    SubmitView,
    ThemeView,
)


router = APIRouter()
logger = logging.getLogger(__name__)


def _manager(request: Request) -> SessionManager:
    return request.app.state.sessions


def _drain(entry: OpenSession) -> list[Notification]:
    return [Notification(**n) for n in entry.notifier.drain()]


def _view(entry: OpenSession) -> SessionView:
    session = entry.session
    prog = session.progress
    return SessionView(
        session_id=entry.session_id,
        client_id=entry.client_id,
        state=session.workflow.state.value,
        restored=entry.restored,
        session_start=session.context.clock.session_start,
        values=session.values(),
        visibility=dict(session.visibility),
        progress=ProgressView(
            filled=prog.filled, total=prog.total, percentage=prog.percentage, label=prog.label()
        ),
        notifications=_drain(entry),
    )


@router.post("/sessions", status_code=201, response_model=SessionView)
async def open_session(body: OpenSessionRequest, request: Request) -> SessionView:
    entry = _manager(request).open(body.client_id)
    return _view(entry)


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(session_id: str, request: Request) -> SessionView:
    return _view(_manager(request).get(session_id))


@router.patch("/sessions/{session_id}/fields/{field_name}", response_model=FieldChangeView)
async def update_field(session_id: str, field_name: str, body: FieldUpdate, request: Request) -> FieldChangeView:
    entry = _manager(request).get(session_id)
    change = entry.session.set_field(field_name, body.value)
    return FieldChangeView(session=_view(entry), visibility_delta=change.delta)


@router.post("/sessions/{session_id}/submit", response_model=SubmitView)
async def submit(session_id: str, request: Request) -> SubmitView:
    entry = _manager(request).get(session_id)
    outcome = entry.session.submit()
    return SubmitView(
        state=outcome.state.value,
        field_errors=outcome.field_errors,
        warnings=outcome.warnings,
        summary=outcome.summary,
        summary_text=outcome.summary.render_text() if outcome.summary is not None else None,
        duration_minutes=outcome.duration_minutes,
        notifications=_drain(entry),
    )


@router.post("/sessions/{session_id}/confirm", response_model=ConfirmView)
async def confirm(session_id: str, request: Request) -> ConfirmView:
    entry = _manager(request).get(session_id)
    outcome = await entry.session.confirm()
    return ConfirmView(state=outcome.state.value, delivered=outcome.delivered, notifications=_drain(entry))


def _state(entry: OpenSession) -> StateView:
    wf = entry.session.workflow
    return StateView(
        state=wf.state.value,
        last_outcome=wf.last_outcome.value if wf.last_outcome is not None else None,
    )


@router.post("/sessions/{session_id}/cancel", response_model=StateView)
async def cancel(session_id: str, request: Request) -> StateView:
    entry = _manager(request).get(session_id)
    entry.session.cancel()
    return _state(entry)


@router.post("/sessions/{session_id}/dismiss", response_model=StateView)
async def dismiss(session_id: str, request: Request) -> StateView:
    entry = _manager(request).get(session_id)
    entry.session.dismiss()
    return _state(entry)


@router.post("/sessions/{session_id}/clear", response_model=SessionView)
async def clear_all_data(session_id: str, request: Request) -> SessionView:
    entry = _manager(request).get(session_id)
    entry.session.clear_all_data()
    return _view(entry)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(session_id: str, request: Request) -> Response:
    _manager(request).close(session_id)
    return Response(status_code=204)


@router.get("/clients/{client_id}/theme", response_model=ThemeView)
async def get_theme(client_id: str, request: Request) -> ThemeView:
    manager = _manager(request)
    theme = load_theme(manager.storage_for(client_id), manager.config.storage.theme_key)
    return ThemeView(client_id=client_id, theme=theme)


@router.post("/clients/{client_id}/theme/toggle", response_model=ThemeView)
async def toggle_client_theme(client_id: str, request: Request) -> ThemeView:
    manager = _manager(request)
    theme = toggle_theme(manager.storage_for(client_id), manager.config.storage.theme_key)
    logger.info("theme_toggled client=%s theme=%s", client_id, theme)
    return ThemeView(client_id=client_id, theme=theme)
