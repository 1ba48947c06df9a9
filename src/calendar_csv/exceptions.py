"""Exceptions raised while exporting calendar events."""

from __future__ import annotations


class CalendarExportError(Exception):
    """Base exception for calendar export errors."""


class ConfigError(CalendarExportError):
    """Raised for bad local files, flag values or query windows."""


class TimestampParseError(ConfigError):
    """Raised when a start or end timestamp cannot be parsed."""

    def __init__(self, name: str, value: str, reason: str):
        self.name = name
        self.value = value
        super().__init__(f"Unable to parse {name} date {value!r}: {reason}")


class DurationParseError(ConfigError):
    """Raised when a duration offset cannot be parsed."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Invalid duration {value!r}. Use values like 90m, 1h30m, 2d or -24h."
        )


class InvalidWindowError(ConfigError):
    """Raised when the resolved end is not after the resolved start."""

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"End date must be after start date: {start} -> {end}")


class AuthError(CalendarExportError):
    """Raised when authorization with the identity provider fails."""


class TransportError(CalendarExportError):
    """Raised when the Calendar API request fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class CancellationError(CalendarExportError):
    """Raised when event collection is cancelled before finishing."""


class DeadlineExceededError(CancellationError):
    """Raised when the query deadline elapses."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Timed out retrieving events after {timeout:g}s")


class CancelledError(CancellationError):
    """Raised when collection was cancelled by the caller."""


class WriteError(CalendarExportError):
    """Raised when a row cannot be written to the output stream."""
