"""Lifecycle event model — schema, codec, and in-memory store.

All events are flat frozen dataclasses that round-trip through a
line-oriented JSON transport (one record per line) or a single JSON array.

Quick Start:
    >>> from streamtrace.events import load_events
    >>> result = load_events('{"type":"subscribe","timestamp":0,"observableId":1,"subscriptionId":1}')
    >>> result.events[0].kind
    'subscribe'

"""

from streamtrace.events.codec import (
    LoadResult,
    decode_record,
    dumps_array,
    dumps_ndjson,
    encode_event,
    encode_line,
    load_events,
    read_events,
)
from streamtrace.events.consistency import ConsistencyIssue, check_consistency
from streamtrace.events.log import EventLog
from streamtrace.events.model import (
    KIND_PRIORITY,
    MISSING,
    Completed,
    Failed,
    StageCreated,
    Subscribed,
    TraceEvent,
    Unsubscribed,
    ValueEmitted,
    event_sort_key,
    now_ms,
    sort_events,
)

__all__ = [
    "KIND_PRIORITY",
    "MISSING",
    "Completed",
    "ConsistencyIssue",
    "EventLog",
    "Failed",
    "LoadResult",
    "StageCreated",
    "Subscribed",
    "TraceEvent",
    "Unsubscribed",
    "ValueEmitted",
    "check_consistency",
    "decode_record",
    "dumps_array",
    "dumps_ndjson",
    "encode_event",
    "encode_line",
    "event_sort_key",
    "load_events",
    "now_ms",
    "read_events",
    "sort_events",
]
