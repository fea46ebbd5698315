"""LogRingRecorder — default recorder capability.

While enabled, a handler on the root logger captures every log record that
passes the root level (structlog events included, since they are routed
through stdlib logging) and keeps it as one NDJSON line in an in-memory ring.

The ring is bounded two ways:
    - size:   hard cap on the total bytes held; oldest lines go first.
    - period: lines older than the window are dropped as new lines arrive.

A snapshot is a header line followed by the buffered lines, oldest first.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import deque
from datetime import timedelta
from typing import Any, BinaryIO

from flight_recorder.codec import format_duration
from flight_recorder.recorder.base import (
    RecorderBackendError,
    RecorderCapability,
    SnapshotActiveError,
)

SNAPSHOT_FORMAT = "flight-recorder/ndjson-v1"


class _CaptureHandler(logging.Handler):
    """Feeds log records into the owning recorder's ring."""

    # Lets configure_logging() keep this handler when it resets the root logger.
    flight_recorder_capture = True

    def __init__(self, recorder: "LogRingRecorder") -> None:
        super().__init__(level=logging.NOTSET)
        self._recorder = recorder

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = _encode_record(record)
        except Exception:
            self.handleError(record)
            return
        self._recorder._append(record.created, line)


def _encode_record(record: logging.LogRecord) -> bytes:
    payload: dict[str, Any] = {
        "ts": record.created,
        "level": record.levelname.lower(),
        "logger": record.name,
        "thread": record.threadName,
    }
    if isinstance(record.msg, dict):
        # structlog event dict (wrap_for_formatter); private keys are formatter metadata.
        payload.update({k: v for k, v in record.msg.items() if not k.startswith("_")})
    else:
        payload["event"] = record.getMessage()
    if record.exc_info and record.exc_info[1] is not None:
        payload["exc"] = repr(record.exc_info[1])
    return json.dumps(payload, default=str).encode("utf-8") + b"\n"


class LogRingRecorder(RecorderCapability):
    """Bounded in-memory ring of recent log records."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger()
        self._lock = threading.Lock()
        self._export_lock = threading.Lock()
        self._lines: deque[tuple[float, bytes]] = deque()
        self._bytes = 0
        self._period = timedelta(seconds=1)
        self._size = 64 * 1024 * 1024
        self._enabled = False
        self._handler: _CaptureHandler | None = None

    # ------------------------------------------------------------------
    # RecorderCapability
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start(self) -> None:
        with self._lock:
            if self._enabled:
                raise RecorderBackendError("recorder already enabled")
            if self._size <= 0:
                raise RecorderBackendError(f"cannot allocate a ring of {self._size} bytes")
            self._lines.clear()
            self._bytes = 0
            handler = _CaptureHandler(self)
            self._handler = handler
            self._enabled = True
        self._logger.addHandler(handler)

    def stop(self) -> None:
        with self._lock:
            if not self._enabled:
                raise RecorderBackendError("recorder not enabled")
            handler = self._handler
            self._handler = None
            self._enabled = False
            self._lines.clear()
            self._bytes = 0
        if handler is not None:
            self._logger.removeHandler(handler)

    def set_period(self, period: timedelta) -> None:
        with self._lock:
            self._period = period
            self._evict(time.time())

    def set_size(self, size: int) -> None:
        with self._lock:
            self._size = size
            self._evict(time.time())

    def write_snapshot(self, sink: BinaryIO) -> int:
        if not self._export_lock.acquire(blocking=False):
            raise SnapshotActiveError("snapshot already in progress")
        try:
            with self._lock:
                if not self._enabled:
                    raise RecorderBackendError("recorder not enabled")
                lines = [line for _, line in self._lines]
                header = {
                    "format": SNAPSHOT_FORMAT,
                    "captured_at": time.time(),
                    "period": format_duration(self._period),
                    "size": self._size,
                    "records": len(lines),
                }
            written = 0
            for chunk in (json.dumps(header).encode("utf-8") + b"\n", *lines):
                sink.write(chunk)
                written += len(chunk)
            return written
        finally:
            self._export_lock.release()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def buffered_bytes(self) -> int:
        with self._lock:
            return self._bytes

    @property
    def buffered_records(self) -> int:
        with self._lock:
            return len(self._lines)

    # ------------------------------------------------------------------
    # Ring maintenance
    # ------------------------------------------------------------------

    def _append(self, created: float, line: bytes) -> None:
        with self._lock:
            if not self._enabled:
                return
            self._lines.append((created, line))
            self._bytes += len(line)
            self._evict(created)

    def _evict(self, now: float) -> None:
        # Caller holds self._lock.
        cutoff = now - self._period.total_seconds()
        while self._lines and (self._bytes > self._size or self._lines[0][0] < cutoff):
            _, dropped = self._lines.popleft()
            self._bytes -= len(dropped)
