from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

TYPE_SUCCESS = "1"
TYPE_ERROR = "3"
TYPE_VALIDATION = "701"


class AppError(Exception):
    status_code = 500
    type_code = TYPE_ERROR

    def __init__(self, message: str, *, status_code: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Malformed input: bad coordinates, missing fields, out-of-range values."""

    status_code = 400
    type_code = TYPE_VALIDATION


class AuthenticationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class TransientError(AppError):
    """Network or database failure talking to a collaborator."""

    status_code = 502


def envelope(message: str, data: Any = None, type_code: str = TYPE_SUCCESS) -> dict[str, Any]:
    return {"type": type_code, "message": message, "data": data}


def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request failed: %s",
            exc.message,
            extra={"endpoint": request.url.path, "method": request.method, "status_code": exc.status_code},
        )
    else:
        logger.info(
            "request rejected: %s",
            exc.message,
            extra={"endpoint": request.url.path, "method": request.method, "status_code": exc.status_code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(exc.message, exc.data, exc.type_code),
    )


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "Invalid request")
    message = f"{location}: {detail}" if location else detail
    return JSONResponse(
        status_code=400,
        content=envelope(message, None, TYPE_VALIDATION),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
