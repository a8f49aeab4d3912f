"""Log watcher — follows an event log file for live re-rendering.

Watches the directory holding the log and reports changes to the log file
itself.  Sinks append to the file, so most changes arrive as "modified";
truncation or rotation by another process shows up as "deleted" followed by
"created".
"""

from __future__ import annotations

import asyncio
import queue
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


@dataclass(frozen=True, slots=True)
class LogChange:
    """A change to the watched log file.

    Attributes:
        path: Absolute path to the log file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: Literal["created", "modified", "deleted"]


_CHANGE_KIND_MAP: dict[Change, Literal["created", "modified", "deleted"]] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


def is_log_change(path: Path, log_path: Path) -> bool:
    """Whether a changed path refers to the watched log file."""
    return path.resolve() == log_path.resolve()


class LogWatcher:
    """Watches one log file and reports its changes.

    Uses watchfiles in a background thread, the same way for both consumers:
    ``changes()`` for asyncio code and ``iter_changes()`` for blocking loops
    such as the ``streamtrace watch`` command.

    """

    def __init__(self, path: Path | str, *, debounce_ms: int = 300) -> None:
        self._path = Path(path).resolve()
        self._debounce_ms = debounce_ms
        self._queue: queue.Queue[LogChange] = queue.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching in a background thread (no-op if already running)."""
        if self.is_running:
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="streamtrace-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def __enter__(self) -> LogWatcher:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    def iter_changes(self, poll: float = 0.5) -> Iterator[LogChange]:
        """Blocking iterator over changes until the watcher is stopped."""
        while self.is_running or not self._queue.empty():
            try:
                yield self._queue.get(timeout=poll)
            except queue.Empty:
                if not self.is_running:
                    break

    async def changes(self, poll: float = 0.5) -> AsyncIterator[LogChange]:
        """Async iterator over changes until the watcher is stopped."""
        while self.is_running or not self._queue.empty():
            try:
                change = await asyncio.to_thread(self._queue.get, timeout=poll)
            except queue.Empty:
                if not self.is_running:
                    break
                continue
            yield change

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and queue log file changes."""
        from watchfiles import watch

        try:
            for raw_changes in watch(
                self._path.parent,
                stop_event=self._stop_event,
                debounce=self._debounce_ms,
                step=100,
                recursive=False,
            ):
                for change_type, path_str in raw_changes:
                    if not is_log_change(Path(path_str), self._path):
                        continue
                    kind = _CHANGE_KIND_MAP.get(change_type, "modified")
                    self._queue.put(LogChange(path=self._path, kind=kind))
        except OSError as exc:
            print(f"  Watch error: {self._path}: {exc}", file=sys.stderr)
