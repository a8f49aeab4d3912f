"""NDJSON sink — appends every bus event to a log file, one record per line.

Usage::

    sink = NdjsonSink(config.log_path)
    handle = tracer.bus.add_sink(sink, name="ndjson")
    ...
    tracer.bus.remove_sink(handle)
    sink.close()

Rotation and truncation of the file are left to the caller: ``reopen()``
closes the current handle so the next event starts a fresh file at the same
path.

"""

from __future__ import annotations

import sys
import threading
from typing import TYPE_CHECKING, TextIO

from streamtrace.events.codec import encode_line

if TYPE_CHECKING:
    from pathlib import Path

    from streamtrace.events.model import TraceEvent


class NdjsonSink:
    """Callable bus sink writing encoded events to ``path`` in append mode."""

    __slots__ = ("_file", "_lock", "_path", "written")

    def __init__(self, path: Path) -> None:
        self._path = path
        self._file: TextIO | None = None
        self._lock = threading.Lock()
        self.written = 0

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self, event: TraceEvent) -> None:
        line = encode_line(event) + "\n"
        with self._lock:
            if self._file is None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._file = self._path.open("a", encoding="utf-8")
            try:
                self._file.write(line)
                self._file.flush()
            except OSError as exc:
                print(f"  NDJSON write error: {self._path.name}: {exc}", file=sys.stderr)
                return
            self.written += 1

    def reopen(self) -> None:
        """Close the file so the next event reopens ``path``."""
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
