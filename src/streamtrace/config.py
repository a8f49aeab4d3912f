"""streamtrace configuration.

TraceConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from streamtrace._errors import ConfigError

# Stage labels that carry no information for the operator tree.
DEFAULT_GENERIC_LABELS: frozenset[str] = frozenset(
    {"unknown", "Unknown", "Observable", "Function", "anonymous"}
)


@dataclass(frozen=True, slots=True)
class TraceConfig:
    """Configuration for instrumentation and rendering.

    Attributes:
        log_path: Event log file read by the CLI and written by ``NdjsonSink``.
        enabled: Master switch for the tracer.  A disabled tracer still hands
            out identities but publishes nothing.
        sample_rate: Fraction (0..1) of ``next`` events to capture.  Lifecycle
            events (subscribe, complete, error, unsubscribe) are never sampled.
        exclude_values: Replace ``next``/``error`` payloads with ``"<redacted>"``.
        tick_ms: Tick width for the quantized timeline.
        max_ticks: Last tick index of the timeline.  Later events collapse
            into this tick.
        marble_scale: Marble resolution in characters per second.
        generic_labels: Labels treated as noise in the operator tree.
        max_events: Capacity of the in-memory ``EventLog`` ring buffer.
        listener_queue_size: Per-listener queue bound (0 = unbounded).

    """

    log_path: Path = field(default_factory=lambda: Path("streamtrace.ndjson"))
    enabled: bool = True
    sample_rate: float = 1.0
    exclude_values: bool = False
    tick_ms: int = 100
    max_ticks: int = 7
    marble_scale: int = 50
    generic_labels: frozenset[str] = DEFAULT_GENERIC_LABELS
    max_events: int = 10_000
    listener_queue_size: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.log_path, Path):
            object.__setattr__(self, "log_path", Path(str(self.log_path)))
        if not isinstance(self.generic_labels, frozenset):
            object.__setattr__(self, "generic_labels", frozenset(self.generic_labels))

        if not 0.0 <= self.sample_rate <= 1.0:
            msg = f"sample_rate must be between 0 and 1, got {self.sample_rate!r}"
            raise ConfigError(msg)
        if self.tick_ms <= 0:
            msg = f"tick_ms must be positive, got {self.tick_ms!r}"
            raise ConfigError(msg)
        if self.max_ticks < 0:
            msg = f"max_ticks must not be negative, got {self.max_ticks!r}"
            raise ConfigError(msg)
        if self.marble_scale <= 0:
            msg = f"marble_scale must be positive, got {self.marble_scale!r}"
            raise ConfigError(msg)
        if self.max_events <= 0:
            msg = f"max_events must be positive, got {self.max_events!r}"
            raise ConfigError(msg)
        if self.listener_queue_size < 0:
            msg = f"listener_queue_size must not be negative, got {self.listener_queue_size!r}"
            raise ConfigError(msg)
