"""Event log — queryable, thread-safe event store.

Stores a bounded ring buffer of ``TraceEvent`` objects for inspection.
Supports querying by event kind, stage, run and time range.

Can be registered directly as a bus sink (``bus.add_sink(log.append)``).

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Safe for
    concurrent reads and writes from multiple threads.

"""

import threading
from collections import deque
from collections.abc import Sequence
from typing import Any

from streamtrace.events.model import TraceEvent


class EventLog:
    """Bounded event store with query support.

    Events are stored in a ring buffer (deque with maxlen).  When the
    buffer is full, the oldest events are discarded automatically.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_dropped", "_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[TraceEvent] = deque(maxlen=max_events)
        self._dropped = 0
        self._lock = threading.Lock()

    def __call__(self, event: TraceEvent) -> None:
        self.append(event)

    def append(self, event: TraceEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            if len(self._events) == self._max_events:
                self._dropped += 1
            self._events.append(event)

    def append_many(self, events: Sequence[TraceEvent]) -> None:
        """Record multiple events at once."""
        with self._lock:
            overflow = len(self._events) + len(events) - self._max_events
            if overflow > 0:
                self._dropped += overflow
            self._events.extend(events)

    def query(
        self,
        *,
        kind: str | None = None,
        stage_id: int | None = None,
        run_id: int | None = None,
        since: int = 0,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Query events with optional filters.

        Args:
            kind: Only return events of this wire kind (e.g. ``"next"``).
            stage_id: Only return events of this stage.
            run_id: Only return events of this run.
            since: Only return events at or after this timestamp (ms).
            limit: Maximum number of events to return.

        Returns:
            List of matching events, most recent first.

        """
        with self._lock:
            results: list[TraceEvent] = []
            # Iterate in reverse (newest first)
            for event in reversed(self._events):
                if len(results) >= limit:
                    break

                if kind is not None and event.kind != kind:
                    continue
                if stage_id is not None and event.stage_id != stage_id:
                    continue
                if run_id is not None and event.run_id != run_id:
                    continue
                if since and event.timestamp < since:
                    continue

                results.append(event)

            return results

    def recent(self, n: int = 20) -> list[TraceEvent]:
        """Return the N most recent events."""
        with self._lock:
            items = list(self._events)
        return items[-n:] if n > 0 else []

    def snapshot(self) -> tuple[TraceEvent, ...]:
        """Return all retained events in insertion order."""
        with self._lock:
            return tuple(self._events)

    def drain(self) -> tuple[TraceEvent, ...]:
        """Return all retained events and release them from the log."""
        with self._lock:
            items = tuple(self._events)
            self._events.clear()
            return items

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Return summary statistics about stored events."""
        with self._lock:
            events = list(self._events)
            dropped = self._dropped

        kind_counts: dict[str, int] = {}
        for event in events:
            kind_counts[event.kind] = kind_counts.get(event.kind, 0) + 1

        return {
            "total": len(events),
            "max_events": self._max_events,
            "dropped": dropped,
            "by_kind": kind_counts,
        }
