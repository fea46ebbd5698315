"""Flight Recorder — Daemon configuration.

Configuration is loaded from (later entries override earlier ones):
    1. Built-in defaults (this file)
    2. System config: /etc/flight-recorder/config.yaml
    3. User config:   ~/.flight-recorder/config.yaml
    4. An explicit ``--config`` file

Environment variables prefixed with FLIGHT_RECORDER_ (``__`` as the nested
delimiter, e.g. ``FLIGHT_RECORDER_RECORDER__SIZE=128MB``) fill in any
section the files leave unset.

Call ``Settings.load()`` once at daemon startup and inject the instance
through ``create_app(settings=...)``.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flight_recorder.codec import parse_duration, parse_size
from flight_recorder.exceptions import InvalidDurationError, InvalidSizeError
from flight_recorder.service import Configuration


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8083, ge=1, le=65535)
    route_prefix: str = Field(
        default="/recorder",
        description="Path prefix for the recorder endpoints (e.g. '/api/v1/debug/flight').",
    )

    @field_validator("route_prefix")
    @classmethod
    def normalise_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v


class RecorderConfig(BaseModel):
    """Initial desired configuration, in wire format."""

    period: str = Field(default="1s", description="Ring time span (e.g. 1s, 500ms, 2m).")
    size: str | int = Field(default="64MB", description="Ring size (bytes, or 512KB, 64MB).")

    @field_validator("period")
    @classmethod
    def check_period(cls, v: str) -> str:
        try:
            parse_duration(v)
        except InvalidDurationError as exc:
            raise ValueError(exc.message) from exc
        return v

    @field_validator("size")
    @classmethod
    def check_size(cls, v: str | int) -> str | int:
        try:
            parse_size(v)
        except InvalidSizeError as exc:
            raise ValueError(exc.message) from exc
        return v

    @property
    def period_value(self) -> timedelta:
        return parse_duration(self.period)

    @property
    def size_value(self) -> int:
        return parse_size(self.size)

    def initial_configuration(self) -> Configuration:
        return Configuration(period=self.period_value, size=self.size_value)


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FLIGHT_RECORDER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    recorder: RecorderConfig = Field(default_factory=RecorderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [
            Path("/etc/flight-recorder/config.yaml"),
            Path.home() / ".flight-recorder" / "config.yaml",
        ]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)


# Module-level singleton, replaced by ``Settings.load()`` at daemon startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
