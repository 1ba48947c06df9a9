"""Query window resolution from command-line timestamps and offsets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from calendar_csv.exceptions import DurationParseError, InvalidWindowError, TimestampParseError

# Seconds per unit; "d" is an addition to the Go duration units
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h|d)")


def parse_timestamp(value: str, name: str = "start") -> datetime:
    """Parse an RFC3339/ISO-8601 timestamp.

    A value without a UTC offset is taken as UTC.

    Raises:
        TimestampParseError: If the value is not a valid timestamp.
    """
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise TimestampParseError(name, value, str(e)) from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_duration(value: str) -> timedelta:
    """Parse a signed duration such as ``90m``, ``-1h30m`` or ``2d``.

    Raises:
        DurationParseError: If the value is not a valid duration.
    """
    text = value.strip()
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise DurationParseError(value)

    seconds = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise DurationParseError(value)
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=sign * seconds)


def format_rfc3339(dt: datetime) -> str:
    """Format a datetime the way the Calendar API expects (second precision)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    formatted = dt.isoformat(timespec="seconds")
    if formatted.endswith("+00:00"):
        formatted = formatted[: -len("+00:00")] + "Z"
    return formatted


@dataclass(frozen=True)
class QueryWindow:
    """Half-open [start, end) time range for an event query."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        # Compared at wire precision, so timeMin < timeMax always holds
        if not self.end.replace(microsecond=0) > self.start.replace(microsecond=0):
            raise InvalidWindowError(format_rfc3339(self.start), format_rfc3339(self.end))

    @property
    def time_min(self) -> str:
        """Inclusive lower bound in wire format."""
        return format_rfc3339(self.start)

    @property
    def time_max(self) -> str:
        """Exclusive upper bound in wire format."""
        return format_rfc3339(self.end)


def resolve_window(
    start: str | None = None,
    end: str | None = None,
    from_offset: timedelta = timedelta(0),
    to_offset: timedelta = timedelta(0),
    now: datetime | None = None,
) -> QueryWindow:
    """Compute the effective query window.

    Args:
        start: Start timestamp; defaults to ``now``.
        end: End timestamp; defaults to ``now``.
        from_offset: Subtracted from the start.
        to_offset: Added to the end.
        now: Reference time for missing timestamps; defaults to the current UTC time.

    Returns:
        The validated window.

    Raises:
        TimestampParseError: If a timestamp is malformed.
        InvalidWindowError: If the resolved end is not after the resolved start.
    """
    now = now or datetime.now(timezone.utc)

    start_dt = parse_timestamp(start, "start") if start else now
    end_dt = parse_timestamp(end, "end") if end else now

    return QueryWindow(start=start_dt - from_offset, end=end_dt + to_offset)
