"""
Application error type and JSON error envelope.

Every error leaving the API has the shape::

    {"error": {"message": "...", "code": "...", "details": ...}, "message": "..."}

``details`` is only included outside production.
"""

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import IS_PRODUCTION

logger = logging.getLogger(__name__)

DEFAULT_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
}


class AppError(HTTPException):
    """HTTPException carrying a machine readable error code."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        details: Any = None,
        extra: Optional[dict] = None,
        headers: Optional[dict] = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.code = code or DEFAULT_CODES.get(status_code, "ERROR")
        self.details = details
        self.extra = extra or {}


class ValidationError(AppError):
    def __init__(self, message: str, details: Any = None):
        super().__init__(400, message, "VALIDATION_ERROR", details)


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND"):
        super().__init__(404, message, code)


def error_body(message: str, code: str, details: Any = None, extra: Optional[dict] = None) -> dict:
    error = {"message": message, "code": code}
    if details is not None and not IS_PRODUCTION:
        error["details"] = details
    body = {"error": error, "message": message}
    if extra:
        body.update(extra)
    return body


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", "Invalid request"))
    # pydantic prefixes messages raised from validators
    for prefix in ("Value error, ", "Assertion failed, "):
        if message.startswith(prefix):
            message = message[len(prefix) :]
    if first.get("type") == "missing":
        field = first.get("loc", [])[-1] if first.get("loc") else "field"
        message = f"{field} is required"
    return message


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.code, exc.details, exc.extra),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    details = exc.detail if not isinstance(exc.detail, str) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, DEFAULT_CODES.get(exc.status_code, "ERROR"), details),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content=error_body(_validation_message(exc), "VALIDATION_ERROR", jsonable_errors(exc)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", "INTERNAL_ERROR", str(exc)),
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", [])), "msg": str(err.get("msg", "")), "type": err.get("type")}
        for err in exc.errors()
    ]
