"""Tests for streamtrace._errors."""

from streamtrace._errors import (
    ConfigError,
    EventFormatError,
    InstrumentationError,
    LogReadError,
    StreamTraceError,
)


class TestErrorHierarchy:
    """All streamtrace errors inherit from StreamTraceError."""

    def test_base_is_exception(self) -> None:
        assert issubclass(StreamTraceError, Exception)

    def test_config_error_inherits(self) -> None:
        assert issubclass(ConfigError, StreamTraceError)

    def test_event_format_error_inherits(self) -> None:
        assert issubclass(EventFormatError, StreamTraceError)

    def test_log_read_error_inherits(self) -> None:
        assert issubclass(LogReadError, StreamTraceError)

    def test_instrumentation_error_inherits(self) -> None:
        assert issubclass(InstrumentationError, StreamTraceError)

    def test_catch_all_streamtrace_errors(self) -> None:
        """All specific errors are catchable via StreamTraceError."""
        for error_cls in (ConfigError, EventFormatError, LogReadError, InstrumentationError):
            try:
                raise error_cls("test")
            except StreamTraceError:
                pass  # Expected: caught by the base class
