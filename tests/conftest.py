"""Shared pytest fixtures for the flight-recorder test suite."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import BinaryIO

import pytest

from flight_recorder.recorder.base import RecorderCapability
from flight_recorder.service import ControlService


# ---------------------------------------------------------------------------
# Recorder test double
# ---------------------------------------------------------------------------


class FakeRecorder(RecorderCapability):
    """In-memory recorder that records every call it receives."""

    def __init__(self, payload: bytes = b"fake-trace-data") -> None:
        self._enabled = False
        self.payload = payload
        self.period: timedelta | None = None
        self.size: int | None = None
        self.calls: list[str] = []
        self.start_error: Exception | None = None
        self.stop_error: Exception | None = None
        self.snapshot_error: Exception | None = None
        self.set_delay = 0.0

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start(self) -> None:
        self.calls.append("start")
        if self.start_error is not None:
            raise self.start_error
        self._enabled = True

    def stop(self) -> None:
        self.calls.append("stop")
        if self.stop_error is not None:
            raise self.stop_error
        self._enabled = False

    def set_period(self, period: timedelta) -> None:
        self.calls.append("set_period")
        if self.set_delay:
            time.sleep(self.set_delay)
        self.period = period

    def set_size(self, size: int) -> None:
        self.calls.append("set_size")
        if self.set_delay:
            time.sleep(self.set_delay)
        self.size = size

    def write_snapshot(self, sink: BinaryIO) -> int:
        self.calls.append("write_snapshot")
        if self.snapshot_error is not None:
            raise self.snapshot_error
        sink.write(self.payload)
        return len(self.payload)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_recorder() -> FakeRecorder:
    return FakeRecorder()


@pytest.fixture
def service(fake_recorder: FakeRecorder) -> ControlService:
    return ControlService(recorder=fake_recorder)

