"""streamtrace error hierarchy.

All streamtrace-specific errors inherit from StreamTraceError for easy catching.
"""


class StreamTraceError(Exception):
    """Base error for all streamtrace operations."""


class ConfigError(StreamTraceError):
    """Invalid or missing configuration."""


class EventFormatError(StreamTraceError):
    """A log record is not a well-formed lifecycle event."""


class LogReadError(StreamTraceError):
    """An event log file could not be read."""


class InstrumentationError(StreamTraceError):
    """Error in the instrumentation layer (tracer, registry, bus)."""
