"""Control service — concurrency-safe state wrapper around one recorder.

The service owns a ``RecorderCapability`` and the *desired* configuration
(period and size).  Configuration changes are stored first and pushed into
the recorder only while it is running, so a change made while stopped takes
effect on the next ``start()``.

Locking:
    start / stop / update   exclusive
    status / snapshot       shared

Create exactly one service per process at the entry point and hand it to
collaborators (``create_app(service=...)``, CLI, embedders).
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from flight_recorder.codec import format_duration, format_size, parse_duration, parse_size
from flight_recorder.exceptions import (
    AlreadyRunningError,
    CapabilityError,
    InvalidDurationError,
    InvalidSizeError,
    NotRunningError,
    SnapshotInProgressError,
    SnapshotWriteError,
)
from flight_recorder.locks import ReadWriteLock
from flight_recorder.logging import get_logger
from flight_recorder.recorder.base import RecorderCapability, SnapshotActiveError

log = get_logger(__name__)

DEFAULT_PERIOD = timedelta(seconds=1)
DEFAULT_SIZE = 64 * 1024 * 1024


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


def _reject_negative(period: timedelta | None, size: int | None) -> None:
    if period is not None and period < timedelta(0):
        raise InvalidDurationError(format_duration(period))
    if size is not None and (isinstance(size, bool) or size < 0):
        raise InvalidSizeError(str(size))


@dataclass(frozen=True)
class Configuration:
    """Desired recorder configuration.  Both fields are always set."""

    period: timedelta = DEFAULT_PERIOD
    size: int = DEFAULT_SIZE

    def __post_init__(self) -> None:
        _reject_negative(self.period, self.size)


@dataclass(frozen=True)
class PartialConfiguration:
    """An update request.  ``None`` means "leave this field unchanged".

    Negative values are rejected here, so callers that skip the wire codec
    still cannot push them into the service.
    """

    period: timedelta | None = None
    size: int | None = None

    def __post_init__(self) -> None:
        _reject_negative(self.period, self.size)

    @classmethod
    def from_wire(
        cls,
        period: str | None = None,
        size: str | int | None = None,
    ) -> "PartialConfiguration":
        """Decode wire values; omitted (``None``) fields stay omitted."""
        return cls(
            period=parse_duration(period) if period is not None else None,
            size=parse_size(size) if size is not None else None,
        )

    def is_empty(self) -> bool:
        return self.period is None and self.size is None


@dataclass(frozen=True)
class StatusView:
    """Consistent read-only projection of recorder state + configuration."""

    enabled: bool
    period: timedelta
    size: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "period": format_duration(self.period),
            "size": format_size(self.size),
        }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ControlService:
    """Serializes all control operations over a single recorder capability."""

    def __init__(
        self,
        recorder: RecorderCapability,
        config: Configuration | None = None,
    ) -> None:
        self._recorder = recorder
        self._config = config or Configuration()
        self._lock = ReadWriteLock()

    @property
    def recorder(self) -> RecorderCapability:
        return self._recorder

    def status(self) -> StatusView:
        with self._lock.read_locked():
            return StatusView(
                enabled=self._recorder.enabled,
                period=self._config.period,
                size=self._config.size,
            )

    def start(self) -> None:
        """Push the desired configuration into the recorder and start it.

        Raises:
            AlreadyRunningError: the recorder is already enabled.
            CapabilityError:     the recorder rejected the configuration or start.
        """
        with self._lock.write_locked():
            if self._recorder.enabled:
                log.warning("recorder_start_refused", reason="already_running")
                raise AlreadyRunningError()

            config = self._config
            try:
                self._recorder.set_period(config.period)
                self._recorder.set_size(config.size)
                self._recorder.start()
            except Exception as exc:
                log.error("recorder_start_failed", error=str(exc))
                raise CapabilityError("start", str(exc)) from exc

        log.info(
            "recorder_started",
            period=format_duration(config.period),
            size=format_size(config.size),
        )

    def stop(self) -> None:
        """Stop the recorder.

        Raises:
            NotRunningError: the recorder is not enabled.
            CapabilityError: the recorder failed to stop.
        """
        with self._lock.write_locked():
            if not self._recorder.enabled:
                log.warning("recorder_stop_refused", reason="not_running")
                raise NotRunningError()
            try:
                self._recorder.stop()
            except Exception as exc:
                log.error("recorder_stop_failed", error=str(exc))
                raise CapabilityError("stop", str(exc)) from exc

        log.info("recorder_stopped")

    def update(self, partial: PartialConfiguration) -> None:
        """Store the present fields and, while running, apply them live.

        Never fails on its own account.  A capability that raises while a
        value is pushed live surfaces as ``CapabilityError``; the desired
        configuration is already stored by then and is applied on the next
        ``start()``.
        """
        with self._lock.write_locked():
            config = Configuration(
                period=partial.period if partial.period is not None else self._config.period,
                size=partial.size if partial.size is not None else self._config.size,
            )
            self._config = config
            live = self._recorder.enabled
            if live:
                try:
                    if partial.period is not None:
                        self._recorder.set_period(config.period)
                    if partial.size is not None:
                        self._recorder.set_size(config.size)
                except Exception as exc:
                    log.error("recorder_live_update_failed", error=str(exc))
                    raise CapabilityError("update", str(exc)) from exc

        log.info(
            "recorder_config_updated",
            period=format_duration(config.period),
            size=format_size(config.size),
            applied_live=live,
        )

    def snapshot(self) -> bytes:
        """Export the recorder's ring as opaque bytes.

        Raises:
            NotRunningError:         the recorder is not enabled.
            SnapshotInProgressError: another export is running; retry later.
            SnapshotWriteError:      the export itself failed.
        """
        with self._lock.read_locked():
            if not self._recorder.enabled:
                raise NotRunningError()

            buf = io.BytesIO()
            try:
                self._recorder.write_snapshot(buf)
            except SnapshotActiveError as exc:
                log.warning("snapshot_refused", reason="in_progress")
                raise SnapshotInProgressError() from exc
            except Exception as exc:
                log.error("snapshot_failed", error=str(exc))
                raise SnapshotWriteError(str(exc)) from exc

        data = buf.getvalue()
        log.info("snapshot_exported", bytes=len(data))
        return data
