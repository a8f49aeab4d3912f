"""Shared type definitions for streamtrace."""

from collections.abc import Callable
from typing import Any, Literal, TypeAlias

# Process-unique identity of a pipeline stage
StageId: TypeAlias = int

# Process-unique identity of one subscription to a stage
SubscriptionId: TypeAlias = int

# Execution run identifier (None = legacy, unlabeled events)
RunId: TypeAlias = int | None

# Wire names of the six lifecycle event kinds
EventKind: TypeAlias = Literal[
    "observable-create",
    "subscribe",
    "next",
    "error",
    "complete",
    "unsubscribe",
]

# Opaque handle for a stage supplied by the hooking layer
StageHandle: TypeAlias = object

# Callback invoked once per emitted event
EventSink: TypeAlias = Callable[[Any], None]
