"""Codec layer — wire formats for recorder configuration values.

Two independent micro-formats, used only at the serialization boundary
(status output, update input).  The control service always works on raw
``timedelta`` / ``int`` values.

Durations::

    parse_duration("100ms")  -> timedelta(milliseconds=100)
    parse_duration("1h30m")  -> timedelta(hours=1, minutes=30)
    format_duration(timedelta(seconds=60)) -> "1m"

Byte sizes (binary multiples, KB = 1024)::

    parse_size("1MB")   -> 1048576
    parse_size(512)     -> 512
    format_size(1048577) -> "1MB"   # truncating, not round-trip exact
"""

from __future__ import annotations

import re
from datetime import timedelta

from flight_recorder.exceptions import InvalidDurationError, InvalidSizeError

# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

_NS_PER_UNIT: dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

# Longer units first so "ms" wins over "m".
_DURATION_TOKEN = re.compile(r"([0-9]+(?:\.[0-9]*)?|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")

_US_PER_SECOND = 1_000_000
_US_PER_MINUTE = 60 * _US_PER_SECOND
_US_PER_HOUR = 60 * _US_PER_MINUTE


def parse_duration(text: str) -> timedelta:
    """Decode a duration literal such as ``"2s"``, ``"1.5h"`` or ``"1m30s"``.

    Accepts an optional leading ``+`` and one or more ``<number><unit>``
    groups.  ``"0"`` is the only unit-less literal accepted.  Negative
    durations are rejected.  Precision below one microsecond is truncated.

    Raises:
        InvalidDurationError: *text* is not a valid non-negative duration.
    """
    if not isinstance(text, str):
        raise InvalidDurationError(str(text))

    body = text[1:] if text.startswith("+") else text
    if body == "0":
        return timedelta(0)
    if not body:
        raise InvalidDurationError(text)

    total_ns = 0
    pos = 0
    while pos < len(body):
        match = _DURATION_TOKEN.match(body, pos)
        if match is None:
            raise InvalidDurationError(text)
        number, unit = match.groups()
        whole, _, fraction = number.partition(".")
        scale = _NS_PER_UNIT[unit]
        try:
            total_ns += int(whole or "0") * scale
            if fraction:
                total_ns += int(fraction) * scale // 10 ** len(fraction)
        except ValueError as exc:
            # int() refuses digit strings past sys.get_int_max_str_digits().
            raise InvalidDurationError(text) from exc
        pos = match.end()

    try:
        return timedelta(microseconds=total_ns // 1_000)
    except OverflowError as exc:
        raise InvalidDurationError(text) from exc


def _with_fraction(value: int, unit: int) -> str:
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{rest:0{digits}d}".rstrip("0")


def format_duration(value: timedelta) -> str:
    """Render the canonical compact form of *value*.

    Zero components are omitted, so ``60s`` renders as ``"1m"`` and one hour
    as ``"1h"``.  Sub-second values use ``ms`` or ``us``.
    """
    micros = value // timedelta(microseconds=1)
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1_000:
        return f"{sign}{micros}us"
    if micros < _US_PER_SECOND:
        return f"{sign}{_with_fraction(micros, 1_000)}ms"

    hours, rest = divmod(micros, _US_PER_HOUR)
    minutes, rest = divmod(rest, _US_PER_MINUTE)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if rest:
        parts.append(f"{_with_fraction(rest, _US_PER_SECOND)}s")
    return sign + "".join(parts)


# ---------------------------------------------------------------------------
# Byte sizes
# ---------------------------------------------------------------------------

KB = 1024
MB = 1024 * 1024

_SIZE_MULTIPLIERS: dict[str, int] = {"B": 1, "KB": KB, "MB": MB}

_SIZE_LITERAL = re.compile(r"\+?([0-9]+)(MB|KB|B)?")


def parse_size(value: str | int) -> int:
    """Decode a byte count: a bare integer, or digits followed by B, KB or MB.

    The unit must follow the digits immediately (``"1MB"``, not ``"1 MB"``).
    Surrounding whitespace is ignored.

    Raises:
        InvalidSizeError: *value* is negative, fractional or unparsable.
    """
    if isinstance(value, bool):
        raise InvalidSizeError(str(value))
    if isinstance(value, int):
        if value < 0:
            raise InvalidSizeError(str(value))
        return value
    if not isinstance(value, str):
        raise InvalidSizeError(str(value))

    match = _SIZE_LITERAL.fullmatch(value.strip())
    if match is None:
        raise InvalidSizeError(value)
    magnitude, unit = match.groups()
    try:
        return int(magnitude) * _SIZE_MULTIPLIERS[unit or "B"]
    except ValueError as exc:
        raise InvalidSizeError(value) from exc


def format_size(size: int) -> str:
    """Render *size* in the largest of MB / KB / B it reaches.

    Integer division truncates: ``format_size(MB + 1) == "1MB"``.  Callers
    that need the exact byte count must keep the integer.
    """
    if size >= MB:
        return f"{size // MB}MB"
    if size >= KB:
        return f"{size // KB}KB"
    return f"{size}B"
