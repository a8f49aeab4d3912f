"""Event bus — fans lifecycle events out to independent listeners.

Publishing is synchronous from the producer's point of view: ``publish()``
returns once the event has been handed to every registered listener's
queue.  Delivery happens in each listener's own context:

- **Async listeners** (``listen()``): an ``asyncio.Queue`` bound to the
  event loop that registered it, consumed with ``stream()``.
- **Sinks** (``add_sink()``): a plain callback run on a dedicated worker
  thread, one event at a time, in publish order.

A slow listener only grows its own queue.  Registration takes effect for
events published after it returns (no replay); after ``unlisten()`` or
``remove_sink()`` returns, no further events are handed to that listener.

Thread Safety:
    The listener tables are protected by a ``threading.Lock``; publishing
    works on a snapshot, so registration may race with emission freely.

"""

from __future__ import annotations

import asyncio
import sys
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from streamtrace._types import EventSink
    from streamtrace.events.model import TraceEvent

_delivery = threading.local()

_STOP = object()


def in_delivery() -> bool:
    """True when called from a sink worker thread while it delivers events."""
    return getattr(_delivery, "active", False)


@dataclass(frozen=True, slots=True, eq=False)
class Listener:
    """An async consumer of bus events.

    Each ``listen()`` call yields a distinct listener; membership is by
    identity, so two listeners may share a ``listener_id``.

    Attributes:
        listener_id: Identifier for this listener (not required to be unique).
        queue: Queue the bus pushes events onto.
        loop: Event loop that owns the queue (None when created outside a
            running loop; events are then enqueued from the publishing thread).
        pending: Events handed over but not yet moved into ``queue``.

    """

    listener_id: str
    queue: asyncio.Queue[Any] = field(default_factory=asyncio.Queue)
    loop: asyncio.AbstractEventLoop | None = None
    pending: deque[Any] = field(default_factory=deque, repr=False)


@dataclass(frozen=True, slots=True)
class SinkHandle:
    """Registration token returned by ``EventBus.add_sink()``."""

    name: str
    sink_id: str


class _SinkWorker:
    """Delivers events to one callback on its own daemon thread."""

    def __init__(self, handle: SinkHandle, callback: EventSink) -> None:
        self.handle = handle
        self.errors = 0
        self._callback = callback
        self._items: deque[object] = deque()
        self._pending = 0
        self._cond = threading.Condition()
        self._thread = threading.Thread(
            target=self._run,
            name=f"streamtrace-sink-{handle.name}",
            daemon=True,
        )
        self._thread.start()

    def put(self, item: object) -> None:
        with self._cond:
            self._items.append(item)
            self._pending += 1
            self._cond.notify_all()

    def stop(self, timeout: float = 5.0) -> None:
        self.put(_STOP)
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    def wait_idle(self, deadline: float) -> bool:
        with self._cond:
            while self._pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def _run(self) -> None:
        _delivery.active = True
        while True:
            with self._cond:
                while not self._items:
                    self._cond.wait()
                item = self._items.popleft()
            try:
                if item is _STOP:
                    return
                self._deliver(item)
            finally:
                with self._cond:
                    self._pending -= 1
                    self._cond.notify_all()

    def _deliver(self, event: object) -> None:
        try:
            self._callback(event)  # type: ignore[arg-type]
        except Exception as exc:
            # A failing sink must not stop delivery of later events.
            self.errors += 1
            print(f"  Sink error: {self.handle.name}: {exc}", file=sys.stderr)


class EventBus:
    """Fan-out distribution of lifecycle events.

    Every listener receives every event published while it is registered,
    exactly once and in publish order, independent of other listeners.

    """

    def __init__(self, *, listener_queue_size: int = 0) -> None:
        self._listeners: set[Listener] = set()
        self._sinks: dict[str, _SinkWorker] = {}
        self._queue_size = listener_queue_size
        self._dropped = 0
        self._lock = threading.Lock()

    @property
    def listener_count(self) -> int:
        """Number of registered async listeners and sinks."""
        with self._lock:
            return len(self._listeners) + len(self._sinks)

    @property
    def dropped(self) -> int:
        """Events dropped because an async listener's queue was full."""
        with self._lock:
            return self._dropped

    @staticmethod
    def in_delivery() -> bool:
        """True on a sink worker thread (see module-level ``in_delivery``)."""
        return in_delivery()

    # ----- Async listeners -----

    def listen(self, *, maxsize: int | None = None, listener_id: str | None = None) -> Listener:
        """Register an async listener bound to the running event loop, if any."""
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        size = self._queue_size if maxsize is None else maxsize
        conn = Listener(
            listener_id=listener_id or uuid.uuid4().hex,
            queue=asyncio.Queue(maxsize=size),
            loop=loop,
        )
        with self._lock:
            self._listeners.add(conn)
        return conn

    def unlisten(self, conn: Listener) -> None:
        """Remove an async listener.  Unknown listeners are ignored."""
        with self._lock:
            self._listeners.discard(conn)

    async def stream(self, conn: Listener) -> AsyncIterator[TraceEvent]:
        """Async generator that yields events from a listener's queue.

        Stops quietly on task cancellation or generator close and
        unregisters the listener on the way out.

        """
        try:
            while True:
                event = await conn.queue.get()
                yield event
        except (asyncio.CancelledError, GeneratorExit):
            return
        finally:
            self.unlisten(conn)

    # ----- Callback sinks -----

    def add_sink(self, callback: EventSink, *, name: str | None = None) -> SinkHandle:
        """Register a callback invoked once per published event on its own thread."""
        sink_id = uuid.uuid4().hex
        handle = SinkHandle(name=name or getattr(callback, "__name__", "sink"), sink_id=sink_id)
        worker = _SinkWorker(handle, callback)
        with self._lock:
            self._sinks[sink_id] = worker
        return handle

    def remove_sink(self, handle: SinkHandle, *, timeout: float = 5.0) -> None:
        """Unregister a sink, letting it finish events published before removal."""
        with self._lock:
            worker = self._sinks.pop(handle.sink_id, None)
        if worker is not None:
            worker.stop(timeout=timeout)

    def sink_errors(self, handle: SinkHandle) -> int:
        """Number of exceptions a registered sink's callback has raised."""
        with self._lock:
            worker = self._sinks.get(handle.sink_id)
        return worker.errors if worker is not None else 0

    def flush(self, timeout: float = 5.0) -> bool:
        """Wait until every sink has delivered what was published so far.

        Returns False if the timeout expired first.  Async listeners are not
        waited for; they drain on their own loop.

        """
        deadline = time.monotonic() + timeout
        with self._lock:
            workers = tuple(self._sinks.values())
        return all(worker.wait_idle(deadline) for worker in workers)

    # ----- Publishing -----

    def publish(self, event: TraceEvent) -> int:
        """Hand an event to every registered listener.

        Returns:
            Number of listeners the event was handed to.

        """
        with self._lock:
            listeners = tuple(self._listeners)
            workers = tuple(self._sinks.values())

        for conn in listeners:
            self._offer(conn, event)
        for worker in workers:
            worker.put(event)
        return len(listeners) + len(workers)

    def _offer(self, conn: Listener, event: TraceEvent) -> None:
        # Publish order is fixed here; drains flush oldest first.
        with self._lock:
            conn.pending.append(event)
        loop = conn.loop
        if loop is None or _current_loop() is loop:
            self._drain(conn)
        elif loop.is_closed():
            self._discard_pending(conn)
        else:
            try:
                loop.call_soon_threadsafe(self._drain, conn)
            except RuntimeError:
                # Loop closed between the check and the call.
                self._discard_pending(conn)

    def _drain(self, conn: Listener) -> None:
        with self._lock:
            events = list(conn.pending)
            conn.pending.clear()
        for event in events:
            try:
                conn.queue.put_nowait(event)
            except asyncio.QueueFull:
                self._count_drop()

    def _discard_pending(self, conn: Listener) -> None:
        with self._lock:
            self._dropped += len(conn.pending)
            conn.pending.clear()

    def _count_drop(self) -> None:
        with self._lock:
            self._dropped += 1

    def close(self, timeout: float = 5.0) -> None:
        """Unregister all listeners and stop every sink worker."""
        with self._lock:
            workers = tuple(self._sinks.values())
            self._sinks.clear()
            self._listeners.clear()
        for worker in workers:
            worker.stop(timeout=timeout)


def _current_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
