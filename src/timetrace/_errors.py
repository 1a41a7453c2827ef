"""Timetrace error hierarchy.

All timetrace-specific errors inherit from TimeTraceError for easy catching.
Unmatched begin/end events are not errors; they are written as markers.
"""


class TimeTraceError(Exception):
    """Base error for all timetrace operations."""


class ConfigError(TimeTraceError):
    """Invalid or missing configuration."""


class TraceWriteError(TimeTraceError):
    """The trace document could not be opened or written."""


class ReplayError(TimeTraceError):
    """A recorded event log line could not be decoded.

    Attributes:
        lineno: 1-based line number of the offending line (0 if unknown).

    """

    def __init__(self, message: str, *, lineno: int = 0) -> None:
        if lineno:
            message = f"line {lineno}: {message}"
        super().__init__(message)
        self.lineno = lineno
