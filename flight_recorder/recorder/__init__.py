"""Recorder capabilities driven by the control service."""

from flight_recorder.recorder.base import (
    RecorderBackendError,
    RecorderCapability,
    SnapshotActiveError,
)
from flight_recorder.recorder.ring import LogRingRecorder

__all__ = [
    "LogRingRecorder",
    "RecorderBackendError",
    "RecorderCapability",
    "SnapshotActiveError",
]
