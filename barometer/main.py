from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from barometer.config import AppConfig, load_config
from barometer.db.base import get_engine
from barometer.http.problem import (
    handle_engine_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from barometer.logging_setup import configure_logging
from barometer.logic.clock import epoch_millis
from barometer.logic.errors import BarometerError
from barometer.logic.field_registry import classify
from barometer.logic.schema_loader import load_schema
from barometer.logic.scheduling import Scheduler
from barometer.logic.session_manager import SessionManager
from barometer.logic.transport import TransportSink
from barometer.routes import api_router

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    scheduler: Optional[Scheduler] = None,
    transport: Optional[TransportSink] = None,
    now: Callable[[], int] = epoch_millis,
) -> FastAPI:
    """Build the FastAPI application.

    The form schema is loaded, classified and its visibility rules compiled
    here so that schema errors surface at startup rather than on the first
    request.
    """
    configure_logging()
    cfg = config or load_config()
    schema = load_schema(cfg.form.schema_path)
    # Fail fast on a malformed schema; the manager compiles visibility rules
    classify(schema)
    sessions = SessionManager(
        config=cfg,
        schema=schema,
        engine=get_engine(cfg.storage.dsn),
        scheduler=scheduler,
        transport=transport,
        now=now,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Teardown signal: flush dirty sessions before the process exits
        sessions.close_all()
        logger.info("sessions_closed_on_shutdown")

    app = FastAPI(title="Emotional Barometer Session Service", lifespan=lifespan)
    app.state.sessions = sessions
    app.state.config = cfg
    app.include_router(api_router, prefix="/api/v1")
    app.add_exception_handler(BarometerError, handle_engine_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    return app
