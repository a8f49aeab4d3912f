"""Tracer — the recording API a library-specific hook calls into.

A hook for a concrete reactive library (wrapping its ``subscribe``, its
observers and its teardown) translates each lifecycle transition into one
tracer call::

    tracer = Tracer(TraceConfig())
    tracer.install()
    sid = tracer.subscribe(stage)
    tracer.next(stage, sid, value)
    tracer.complete(stage, sid)
    tracer.unsubscribe(stage, sid)

The tracer assigns identities through a ``StageRegistry``, stamps events with
the current run id and a millisecond timestamp, applies the sampling and
redaction policies, and publishes to an ``EventBus``.

Feedback guard:
    Calls made from a bus sink thread, and calls for handles the registry
    considers internal, are ignored.  Listening to the bus with an
    instrumented pipeline therefore cannot produce events about itself.

"""

from __future__ import annotations

import random
import threading
from typing import TYPE_CHECKING

from streamtrace._errors import InstrumentationError
from streamtrace.config import TraceConfig
from streamtrace.events.model import (
    Completed,
    Failed,
    StageCreated,
    Subscribed,
    Unsubscribed,
    ValueEmitted,
    now_ms,
)
from streamtrace.instrument.bus import EventBus, in_delivery
from streamtrace.instrument.identity import IdentityAllocator
from streamtrace.instrument.registry import AttributeProvenance, StageRegistry

if TYPE_CHECKING:
    from collections.abc import Callable

    from streamtrace.events.model import TraceEvent
    from streamtrace.instrument.registry import Provenance

REDACTED = "<redacted>"


class Tracer:
    """Records stage and subscription lifecycle events onto a bus.

    Args:
        config: Policies (enabled, sample_rate, exclude_values).
        bus: Destination bus.  A private bus is created when omitted.
        provenance: Label/parent derivation for stage handles.
        clock: Millisecond clock, replaceable for deterministic tests.
        rng: Random source for ``next`` sampling.
        strict: Raise ``InstrumentationError`` when recording while not
            installed instead of silently ignoring the call.

    """

    def __init__(
        self,
        config: TraceConfig | None = None,
        *,
        bus: EventBus | None = None,
        provenance: Provenance | None = None,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
        strict: bool = False,
    ) -> None:
        self._config = config if config is not None else TraceConfig()
        self._bus = bus if bus is not None else EventBus(
            listener_queue_size=self._config.listener_queue_size,
        )
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self._strict = strict
        self._allocator = IdentityAllocator()
        self._registry = StageRegistry(
            self._allocator,
            provenance if provenance is not None else AttributeProvenance(),
            self._on_stage_created,
        )
        self._run_id: int | None = None
        self._installed = False
        self._lock = threading.Lock()

    # ----- Lifecycle of the instrumentation itself -----

    @property
    def bus(self) -> EventBus:
        """The bus this tracer publishes to."""
        return self._bus

    @property
    def registry(self) -> StageRegistry:
        """The stage registry (for ``mark_internal`` and identity lookups)."""
        return self._registry

    @property
    def config(self) -> TraceConfig:
        return self._config

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def run_id(self) -> int | None:
        """Run id stamped on events since the last ``install()``."""
        return self._run_id

    def install(self, run_id: int | None = None) -> int:
        """Start recording a new run.

        Handle identities from a previous installation are forgotten, but
        ids keep counting upward and are never reused.

        Returns:
            The run id (the install timestamp unless given explicitly).

        """
        with self._lock:
            self._registry.reset()
            self._run_id = run_id if run_id is not None else self._clock()
            self._installed = True
            return self._run_id

    def uninstall(self) -> None:
        """Stop recording.  Later lifecycle calls are ignored."""
        with self._lock:
            self._installed = False

    # ----- Recording -----

    def stage(self, handle: object) -> int | None:
        """Record a stage on first sight and return its id (None if ignored)."""
        if not self._should_record():
            return None
        return self._registry.record_first_seen(handle)

    def subscribe(self, handle: object) -> int | None:
        """Record a new subscription to a stage and return its id.

        Returns None when the call is ignored (not installed, internal
        handle, or called from a bus sink).

        """
        stage_id = self.stage(handle)
        if stage_id is None:
            return None
        subscription_id = self._allocator.next_subscription_id()
        self._emit(
            Subscribed(
                stage_id=stage_id,
                subscription_id=subscription_id,
                timestamp=self._clock(),
                run_id=self._run_id,
            )
        )
        return subscription_id

    def next(self, handle: object, subscription_id: int | None, value: object) -> None:
        """Record a value delivered by a subscription (subject to sampling)."""
        stage_id = self._subscription_stage(handle, subscription_id)
        if stage_id is None:
            return
        rate = self._config.sample_rate
        if rate < 1.0 and self._rng.random() >= rate:
            return
        self._emit(
            ValueEmitted(
                stage_id=stage_id,
                subscription_id=subscription_id,  # type: ignore[arg-type]
                timestamp=self._clock(),
                value=REDACTED if self._config.exclude_values else value,
                run_id=self._run_id,
            )
        )

    def error(self, handle: object, subscription_id: int | None, error: object) -> None:
        """Record a subscription terminating with an error."""
        stage_id = self._subscription_stage(handle, subscription_id)
        if stage_id is None:
            return
        self._emit(
            Failed(
                stage_id=stage_id,
                subscription_id=subscription_id,  # type: ignore[arg-type]
                timestamp=self._clock(),
                error=REDACTED if self._config.exclude_values else error,
                run_id=self._run_id,
            )
        )

    def complete(self, handle: object, subscription_id: int | None) -> None:
        """Record a subscription completing."""
        stage_id = self._subscription_stage(handle, subscription_id)
        if stage_id is None:
            return
        self._emit(
            Completed(
                stage_id=stage_id,
                subscription_id=subscription_id,  # type: ignore[arg-type]
                timestamp=self._clock(),
                run_id=self._run_id,
            )
        )

    def unsubscribe(self, handle: object, subscription_id: int | None) -> None:
        """Record a consumer tearing a subscription down."""
        stage_id = self._subscription_stage(handle, subscription_id)
        if stage_id is None:
            return
        self._emit(
            Unsubscribed(
                stage_id=stage_id,
                subscription_id=subscription_id,  # type: ignore[arg-type]
                timestamp=self._clock(),
                run_id=self._run_id,
            )
        )

    # ----- Internals -----

    def _should_record(self) -> bool:
        if not self._installed:
            if self._strict:
                msg = "tracer is not installed; call install() first"
                raise InstrumentationError(msg)
            return False
        return not in_delivery()

    def _subscription_stage(self, handle: object, subscription_id: int | None) -> int | None:
        if subscription_id is None:
            # The subscribe call was ignored, so the whole subscription is.
            return None
        return self.stage(handle)

    def _on_stage_created(self, stage_id: int, label: str, parent_id: int | None) -> None:
        self._emit(
            StageCreated(
                stage_id=stage_id,
                label=label,
                parent_id=parent_id,
                timestamp=self._clock(),
                run_id=self._run_id,
            )
        )

    def _emit(self, event: TraceEvent) -> None:
        if self._config.enabled:
            self._bus.publish(event)
