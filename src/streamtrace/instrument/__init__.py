"""Instrumentation layer — identity, stage registry, tracer, and event bus.

Turns lifecycle calls from a library-specific hook into events and fans
them out to listeners without feeding listener activity back in.
"""

from streamtrace.instrument.bus import EventBus, Listener, SinkHandle, in_delivery
from streamtrace.instrument.identity import IdentityAllocator
from streamtrace.instrument.registry import (
    LABEL_ATTR,
    AttributeProvenance,
    Provenance,
    StageInfo,
    StageRegistry,
    tag,
)
from streamtrace.instrument.sinks import NdjsonSink
from streamtrace.instrument.tracer import REDACTED, Tracer

__all__ = [
    "LABEL_ATTR",
    "REDACTED",
    "AttributeProvenance",
    "EventBus",
    "IdentityAllocator",
    "Listener",
    "NdjsonSink",
    "Provenance",
    "SinkHandle",
    "StageInfo",
    "StageRegistry",
    "Tracer",
    "in_delivery",
    "tag",
]
