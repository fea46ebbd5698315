"""Recorder capability — abstract interface.

The control service never implements sampling itself; it drives an object
implementing ``RecorderCapability``.  Implementations must tolerate being
called from several threads as long as calls that change state are
serialized by the caller (the control service does this with its lock).
``write_snapshot`` may be called concurrently and must refuse overlapping
exports with ``SnapshotActiveError`` instead of producing corrupt output.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import BinaryIO


class RecorderBackendError(Exception):
    """Raised by a recorder capability when it cannot honour a request."""


class SnapshotActiveError(RecorderBackendError):
    """An export of this recorder is already running."""


class RecorderCapability(ABC):
    """Abstract flight recorder: a bounded ring of recent trace data."""

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """True while the recorder is capturing."""

    @abstractmethod
    def start(self) -> None:
        """Begin capturing.  Raises ``RecorderBackendError`` on failure."""

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing and release the ring."""

    @abstractmethod
    def set_period(self, period: timedelta) -> None:
        """Set the approximate time span the ring should cover."""

    @abstractmethod
    def set_size(self, size: int) -> None:
        """Set the approximate ring size in bytes.  Takes precedence over the period."""

    @abstractmethod
    def write_snapshot(self, sink: BinaryIO) -> int:
        """Write the ring's current contents to *sink* and return the byte count."""
