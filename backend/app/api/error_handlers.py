"""Error Handlers — map failures to the JSON error envelope the form builder UI reads.

Invariants:
    - AirformError → its own envelope (code, message, severity, form/question context)
    - Malformed form definitions or answer payloads → 400 VALIDATION_ERROR, one entry
      per offending location with the "body"/"query" prefix stripped
      (e.g. "questions.0.type")
    - Anything else → 500 INTERNAL_ERROR; Airtable tokens and stack traces stay in logs
    - Respondent-side errors (missing answers, unknown form) log at WARNING;
      Airtable outages and server faults at ERROR

Design Decisions:
    - Three handlers registered in order: domain, request validation, catch-all
    - Kept out of main.py so the entry point only wires routers and lifespan
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.errors import AirformError, ErrorSeverity

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path"}


def register_error_handlers(app: FastAPI) -> None:
    """Install the domain, validation and catch-all handlers."""
    _register_airform_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_airform_error_handler(app: FastAPI) -> None:

    @app.exception_handler(AirformError)
    async def airform_error_handler(request: Request, exc: AirformError):
        level = logging.WARNING if exc.http_status < 500 else logging.ERROR
        logger.log(
            level,
            f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
            extra={
                "error_code": exc.code,
                "form_id": exc.context.form_id,
                "question_key": exc.context.question_key,
                "path": request.url.path,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        details = _validation_details(exc)
        logger.warning(
            f"Rejected payload on {request.url.path}: "
            f"{', '.join(d['field'] for d in details)}",
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Form or submission payload is malformed",
                    "category": "validation",
                    "severity": ErrorSeverity.ERROR.value,
                    "details": details,
                },
            },
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
            extra={"path": request.url.path},
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "The form service failed to handle this request",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _field_path(loc: tuple) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(str(p) for p in parts) or "body"


def _validation_details(exc: RequestValidationError) -> list[dict]:
    return [
        {"field": _field_path(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
