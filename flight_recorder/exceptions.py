"""Flight Recorder — Exception hierarchy.

All exceptions raised by the control service inherit from FlightRecorderError
so that callers can catch the full family with a single except clause.

Hierarchy:
    FlightRecorderError
    ├── InvalidInputError
    │   ├── InvalidDurationError
    │   └── InvalidSizeError
    ├── StateConflictError
    │   ├── AlreadyRunningError
    │   └── NotRunningError
    ├── SnapshotInProgressError
    ├── CapabilityError
    ├── SnapshotWriteError
    └── APIResponseError          (client side: non-2xx from the daemon)

Errors raised *by* a recorder capability (``RecorderBackendError`` and
``SnapshotActiveError``) live in ``flight_recorder.recorder.base``; the
service translates them into this hierarchy.
"""

from __future__ import annotations

from typing import Any


class FlightRecorderError(Exception):
    """Base exception for all flight recorder errors."""

    retryable: bool = False

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Invalid input (codec layer)
# ---------------------------------------------------------------------------


class InvalidInputError(FlightRecorderError):
    """Base for values rejected at the wire boundary."""


class InvalidDurationError(InvalidInputError):
    """A period literal could not be decoded into a duration."""

    def __init__(self, literal: str) -> None:
        super().__init__(
            f"invalid period: {literal} should be a duration (e.g. 1s, 100ms, 1h)",
            context={"literal": literal},
        )
        self.literal = literal


class InvalidSizeError(InvalidInputError):
    """A size literal could not be decoded into a byte count."""

    def __init__(self, literal: str) -> None:
        super().__init__(
            f"invalid size: {literal} should be an integer of bytes, "
            "or a memory unit (e.g. X, or 1MB, 1KB, 1B)",
            context={"literal": literal},
        )
        self.literal = literal


# ---------------------------------------------------------------------------
# State conflicts
# ---------------------------------------------------------------------------


class StateConflictError(FlightRecorderError):
    """The operation is not legal in the recorder's current state."""


class AlreadyRunningError(StateConflictError):
    def __init__(self) -> None:
        super().__init__("flight recorder is already running")


class NotRunningError(StateConflictError):
    def __init__(self) -> None:
        super().__init__("flight recorder is not running")


# ---------------------------------------------------------------------------
# Snapshot export
# ---------------------------------------------------------------------------


class SnapshotInProgressError(FlightRecorderError):
    """Another snapshot export is still running.  Safe to retry."""

    retryable = True

    def __init__(self) -> None:
        super().__init__("flight recorder snapshot already in progress")


class SnapshotWriteError(FlightRecorderError):
    """Draining the recorder into the snapshot buffer failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"failed to write snapshot: {reason}",
            context={"reason": reason},
        )
        self.reason = reason


# ---------------------------------------------------------------------------
# Backend failures
# ---------------------------------------------------------------------------


class CapabilityError(FlightRecorderError):
    """The underlying recorder refused or failed a start/stop request."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"failed to {operation} flight recorder: {reason}",
            context={"operation": operation, "reason": reason},
        )
        self.operation = operation
        self.reason = reason


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class APIResponseError(FlightRecorderError):
    """The daemon answered a client request with a non-2xx status."""

    def __init__(self, status_code: int, message: str, code: str | None = None) -> None:
        super().__init__(message, context={"status_code": status_code, "code": code})
        self.status_code = status_code
        self.code = code
        self.retryable = code == "snapshot_in_progress"
