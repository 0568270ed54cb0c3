"""Problem+JSON utilities and exception handlers.

Maps engine errors and request validation failures onto RFC 7807
application/problem+json responses.
"""

from __future__ import annotations

import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from barometer.logic.errors import BarometerError, InvalidTransition, ReservedField, SchemaConflict, UnknownField
from barometer.logic.session_manager import SessionNotFound

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)

# Engine error type -> (status, title, code)
ERROR_MAP = {
    SessionNotFound: (404, "Not Found", "SESSION_NOT_FOUND"),
    UnknownField: (404, "Not Found", "FIELD_UNKNOWN"),
    InvalidTransition: (409, "Conflict", "WORKFLOW_INVALID_TRANSITION"),
    ReservedField: (409, "Conflict", "FIELD_RESERVED"),
    SchemaConflict: (500, "Internal Server Error", "SCHEMA_CONFLICT"),
}


def problem(status: int, title: str, detail: str, code: str) -> dict:
    return {"title": title, "status": status, "detail": detail, "code": code}


async def handle_engine_error(request: Request, exc: BarometerError) -> JSONResponse:  # noqa: D401
    status, title, code = 500, "Internal Server Error", "ENGINE_ERROR"
    for exc_type, mapped in ERROR_MAP.items():
        if isinstance(exc, exc_type):
            status, title, code = mapped
            break
    logger.info("error_handler.handle code=%s path=%s", code, request.url.path)
    return JSONResponse(
        problem(status, title, str(exc), code),
        status_code=status,
        media_type=PROBLEM_MEDIA_TYPE,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    body = problem(422, "Invalid Request", "Request validation failed", "REQUEST_INVALID")
    body["errors"] = [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", "")), "type": str(err.get("type", ""))}
        for err in exc.errors()
    ]
    return JSONResponse(body, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=True)
    return JSONResponse(
        {"title": "Internal Server Error", "status": 500},
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "ERROR_MAP",
    "handle_engine_error",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
