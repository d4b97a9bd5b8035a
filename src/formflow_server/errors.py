"""Global exception handlers: map SDK exceptions to HTTP status codes.

Handlers are looked up along the exception's MRO, so the specific formflow
errors below win over the generic ``ValueError`` handler even though most
of them subclass ``ValueError``.

  ValidationError      -> 422 with per-field messages
  SessionClosedError   -> 409
  SchemaError          -> 500 (authoring bug, logged)
  NavigationCycleError -> 500 (authoring bug, logged)
  ValueError           -> 404 / 409 / 400 by message pattern
  KeyError             -> 404
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from formflow.errors import (
    NavigationCycleError,
    SchemaError,
    SessionClosedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; first match wins
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    ("not found", 404),
    ("already", 409),
]

# Client-facing text per status; the raw message stays in the server log
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Conflict with the current state of the resource",
    400: "Invalid request",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map ``ValueError`` to 404 / 409 / 400 by inspecting its message."""
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    return JSONResponse(
        status_code=status,
        content={"detail": _SAFE_MESSAGES.get(status, "Invalid request")},
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Answer format errors are safe to echo: they describe the user's input."""
    logger.info("Validation failed at %s: %s", request.url, exc.errors)
    return JSONResponse(
        status_code=422,
        content={"detail": "Invalid answers", "errors": exc.errors},
    )


async def session_closed_handler(request: Request, exc: SessionClosedError) -> JSONResponse:
    logger.warning("SessionClosedError at %s: %s", request.url, exc)
    return JSONResponse(status_code=409, content={"detail": "Form session is complete"})


async def schema_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Schema and cycle errors mean a broken form definition."""
    logger.error("Form definition error at %s: %s", request.url, exc)
    return JSONResponse(status_code=500, content={"detail": "Form definition error"})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def install_error_handlers(app) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(SessionClosedError, session_closed_handler)
    app.add_exception_handler(SchemaError, schema_error_handler)
    app.add_exception_handler(NavigationCycleError, schema_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)
