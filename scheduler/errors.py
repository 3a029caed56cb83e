"""
Error taxonomy for the scheduler.

Services raise these; routers let them propagate and the handlers
registered in register_exception_handlers() turn them into JSON responses.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SchedulerError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(SchedulerError):
    status_code = 400

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class AuthorizationError(SchedulerError):
    status_code = 403


class NotFoundError(SchedulerError):
    status_code = 404


class UnavailableError(SchedulerError):
    """Slot is blocked, day-blocked, past or reserved for another round."""
    status_code = 403


class ConflictError(SchedulerError):
    status_code = 409


class TransientStoreError(SchedulerError):
    status_code = 500


class CorruptRecordError(SchedulerError):
    status_code = 500


class ExternalIntegrationError(SchedulerError):
    status_code = 502


def register_exception_handlers(app):
    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(request: Request, exc: SchedulerError):
        if exc.status_code >= 500:
            logger.error(f"[{type(exc).__name__}] {exc.message} | Path={request.url.path}")
            # Storage details stay in the log
            detail = "Internal server error" if exc.status_code == 500 else exc.message
        else:
            logger.warning(f"[{type(exc).__name__}] {exc.message} | Path={request.url.path}")
            detail = exc.message

        content = {"success": False, "detail": detail}
        if isinstance(exc, ValidationError):
            content["errors"] = exc.errors
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"[RequestValidation] Path={request.url.path} | {exc.errors()}")
        missing = [
            ".".join(str(p) for p in err["loc"][1:])
            for err in exc.errors()
            if err.get("type") == "missing"
        ]
        detail = "Missing required fields" if missing else "Invalid request parameters"
        return JSONResponse(
            status_code=400,
            content={"success": False, "detail": detail, "errors": missing or [
                str(err.get("msg")) for err in exc.errors()
            ]},
        )
