"""Flight Recorder — Structured logging configuration.

structlog renders every record, including uvicorn's and any other stdlib
logger's, through one ``ProcessorFormatter`` on the root logger.  The
request ID of the HTTP call being served is kept in structlog's
context-local storage and lands on every event logged while handling it.

A running ``LogRingRecorder`` hangs its capture handler on the same root
logger, so ``configure_logging()`` leaves that handler in place.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def bind_request_context(request_id: str | None = None) -> None:
    """Attach *request_id* to every event logged from this task or thread."""
    if request_id is not None:
        structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    structlog.contextvars.unbind_contextvars("request_id")


def _drop_color_message(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    """uvicorn duplicates every message as ``color_message``."""
    event_dict.pop("color_message", None)
    return event_dict


def _renderer_chain(format: str) -> list[Any]:
    if format == "json":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def _output_handlers(formatter: logging.Formatter, log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(
    level: str = "info",
    format: str = "console",
    log_file: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level:    debug, info, warning, error or critical.
        format:   ``"console"`` or ``"json"``.
        log_file: Also append rendered records to this file.
    """
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _drop_color_message,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderer_chain(format),
        ],
    )

    root = logging.getLogger()
    capture = [h for h in root.handlers if getattr(h, "flight_recorder_capture", False)]
    root.handlers = _output_handlers(formatter, log_file) + capture
    root.setLevel(level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Usage: ``log = get_logger(__name__); log.info("recorder_started", size="64MB")``."""
    return structlog.get_logger(name)
