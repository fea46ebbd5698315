"""API layer — Request middleware and error handlers.

- Request ID injection (X-Request-ID header)
- Structured access logging
- FlightRecorderError handler → clean ErrorResponse with a mapped status
- Request validation handler → 400 ``invalid_payload``
"""

from __future__ import annotations

import time
import uuid
from typing import Any

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from flight_recorder.api.schemas import ErrorResponse
from flight_recorder.exceptions import (
    AlreadyRunningError,
    CapabilityError,
    FlightRecorderError,
    InvalidDurationError,
    InvalidInputError,
    InvalidSizeError,
    NotRunningError,
    SnapshotInProgressError,
    SnapshotWriteError,
)
from flight_recorder.logging import bind_request_context, clear_request_context, get_logger

log = get_logger(__name__)

SNAPSHOT_RETRY_AFTER_SECONDS = 1


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a unique X-Request-ID to every request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        bind_request_context(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log each request with timing information."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = round((time.time() - start) * 1000, 2)

        log.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            request_id=getattr(request.state, "request_id", None),
        )
        return response


def build_error_handler() -> Any:
    """Return a FastAPI exception handler for FlightRecorderError subclasses.

    Status classes: invalid input 400, state conflict 409, snapshot busy 503
    (with Retry-After), everything else 500.
    """

    async def handler(request: Request, exc: FlightRecorderError) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        headers: dict[str, str] = {}

        if isinstance(exc, InvalidDurationError):
            status_code = 400
            code = "invalid_duration"
        elif isinstance(exc, InvalidSizeError):
            status_code = 400
            code = "invalid_size"
        elif isinstance(exc, InvalidInputError):
            status_code = 400
            code = "invalid_payload"
        elif isinstance(exc, AlreadyRunningError):
            status_code = 409
            code = "already_running"
        elif isinstance(exc, NotRunningError):
            status_code = 409
            code = "not_running"
        elif isinstance(exc, SnapshotInProgressError):
            status_code = 503
            code = "snapshot_in_progress"
            headers["Retry-After"] = str(SNAPSHOT_RETRY_AFTER_SECONDS)
        elif isinstance(exc, CapabilityError):
            status_code = 500
            code = "capability_error"
        elif isinstance(exc, SnapshotWriteError):
            status_code = 500
            code = "write_failed"
        else:
            status_code = 500
            code = "internal_error"

        body = ErrorResponse(
            error=exc.message,
            code=code,
            detail=exc.context or None,
            request_id=request_id,
        )
        return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)

    return handler


def build_validation_error_handler() -> Any:
    """Return a handler turning malformed request bodies into 400 ``invalid_payload``."""

    async def handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        log.warning("invalid_payload", path=request.url.path, errors=errors)
        body = ErrorResponse(
            error="Invalid JSON payload",
            code="invalid_payload",
            detail=errors,
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    return handler
