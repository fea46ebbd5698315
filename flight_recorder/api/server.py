"""API layer — FastAPI application factory.

``create_app()`` is the single entry point for building the daemon app.  The
control service is constructed here (or injected) so that tests and
embedders can pass their own recorder::

    service = ControlService(recorder=LogRingRecorder())
    app = create_app(settings, service=service)

Applications that already have a FastAPI instance can mount the recorder
endpoints under any prefix with ``register_recorder()``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from flight_recorder import __version__
from flight_recorder.api.middleware import (
    AccessLogMiddleware,
    RequestIDMiddleware,
    build_error_handler,
    build_validation_error_handler,
)
from flight_recorder.api.routes import health, recorder as recorder_routes
from flight_recorder.codec import format_duration, format_size
from flight_recorder.config import Settings, get_settings
from flight_recorder.exceptions import FlightRecorderError, NotRunningError
from flight_recorder.logging import configure_logging, get_logger
from flight_recorder.recorder.ring import LogRingRecorder
from flight_recorder.service import ControlService

log = get_logger(__name__)


def register_recorder(
    app: FastAPI,
    service: ControlService,
    prefix: str = "/recorder",
) -> None:
    """Mount the recorder endpoints on *app* under *prefix*.

    Attaches *service* to ``app.state`` and installs the error handlers that
    map FlightRecorderError subclasses onto HTTP status codes.
    """
    app.state.control_service = service
    app.add_exception_handler(FlightRecorderError, build_error_handler())  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, build_validation_error_handler())  # type: ignore[arg-type]
    app.include_router(recorder_routes.router, prefix=prefix)


def create_app(
    settings: Settings | None = None,
    service: ControlService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (used in tests).
        service:  Optional pre-built control service.  By default a
                  LogRingRecorder-backed service is created from
                  ``settings.recorder``.

    Returns:
        A fully configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        log_file=str(settings.logging.file) if settings.logging.file else None,
    )

    if service is None:
        service = ControlService(
            recorder=LogRingRecorder(),
            config=settings.recorder.initial_configuration(),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        initial = service.status()
        log.info(
            "daemon_ready",
            version=__version__,
            host=settings.server.host,
            port=settings.server.port,
            prefix=settings.server.route_prefix,
            period=format_duration(initial.period),
            size=format_size(initial.size),
        )
        yield
        log.info("daemon_stopping")
        # Final stop so the recorder's log handler is detached on exit.
        try:
            service.stop()
        except NotRunningError:
            pass

    app = FastAPI(
        title="Flight Recorder",
        description="Remote control over a continuous-sampling flight recorder.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware: the last one added is the outermost.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.state.settings = settings
    app.include_router(health.router)
    register_recorder(app, service, prefix=settings.server.route_prefix)

    return app
