"""API layer — Request and response schemas.

These are the external API contracts.  Durations and sizes cross the wire as
strings (``"2s"``, ``"128MB"``); decoding into typed values happens through
the codec layer, never inside the control service.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, Field, StrictInt

from flight_recorder.service import PartialConfiguration, StatusView


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class UpdateRequest(BaseModel):
    """POST {prefix}/update — change the desired configuration.

    Omitted (or null) fields are left unchanged.
    """

    period: str | None = Field(
        default=None,
        description="New ring time span, e.g. '2s', '100ms', '1h'.",
    )
    size: StrictInt | str | None = Field(
        default=None,
        description="New ring size: integer bytes, or '512KB', '128MB', '4096B'.",
    )

    def to_partial(self) -> PartialConfiguration:
        """Decode into a PartialConfiguration (raises InvalidDurationError / InvalidSizeError)."""
        return PartialConfiguration.from_wire(period=self.period, size=self.size)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class StatusResponse(BaseModel):
    enabled: bool
    period: str
    size: str

    @classmethod
    def from_view(cls, view: StatusView) -> "StatusResponse":
        return cls(**view.to_wire())


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    uptime_seconds: float
    recorder_enabled: bool
    timestamp: float = Field(default_factory=time.time)


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: Any | None = None
    request_id: str | None = None
