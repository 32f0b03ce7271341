from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.lifecycle.domain.exceptions import (
    NotificationDispatchError,
    PersistenceError,
    TaskLifecycleError,
    TaskNotFoundError,
    TaskValidationError,
    UnknownBatchActionError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[TaskLifecycleError], int]] = [
    (TaskNotFoundError, HTTPStatus.NOT_FOUND),
    (TaskValidationError, HTTPStatus.BAD_REQUEST),
    (UnknownBatchActionError, HTTPStatus.BAD_REQUEST),
    (PersistenceError, HTTPStatus.INTERNAL_SERVER_ERROR),
    (NotificationDispatchError, HTTPStatus.INTERNAL_SERVER_ERROR),
]


def _error_response(
    request: Request,
    status_code: int,
    message: str | list,
    exc: Exception,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    status_code = int(status_code)
    error = HTTPStatus(status_code).phrase
    log_payload = {
        "status": status_code,
        "method": request.method,
        "path": request.url.path,
        "message": message,
        "error": error,
    }
    if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("HTTP Exception: %s", json.dumps(log_payload, default=str), exc_info=exc)
    else:
        logger.warning("HTTP Exception: %s", json.dumps(log_payload, default=str))

    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content={
            "success": False,
            "statusCode": int(status_code),
            "message": message,
            "error": error,
            "path": request.url.path,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def lifecycle_error_handler(request: Request, exc: TaskLifecycleError) -> JSONResponse:
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped_status
            break
    # Internal errors carry a caller-safe message; the cause stays in the logs.
    return _error_response(request, status_code, str(exc), exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(
        request,
        exc.status_code,
        str(exc.detail),
        exc,
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    ]
    return _error_response(request, HTTPStatus.BAD_REQUEST, messages, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskLifecycleError, lifecycle_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
