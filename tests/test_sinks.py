"""Tests for streamtrace.instrument.sinks — NDJSON file sink."""

from __future__ import annotations

from pathlib import Path

from streamtrace.events.codec import read_events
from streamtrace.instrument.bus import EventBus
from streamtrace.instrument.sinks import NdjsonSink
from tests.conftest import created, emitted, subscribed


class TestNdjsonSink:
    """Append-only writing, one record per line."""

    def test_writes_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.ndjson"
        sink = NdjsonSink(path)
        sink(created(1, "of"))
        sink(subscribed(1, 1))
        sink.close()

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert sink.written == 2
        assert read_events(path).events == (created(1, "of"), subscribed(1, 1))

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        path = tmp_path / "logs" / "nested" / "trace.ndjson"
        sink = NdjsonSink(path)
        sink(subscribed(1, 1))
        sink.close()
        assert path.is_file()

    def test_appends_to_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.ndjson"
        path.write_text('{"type":"subscribe","timestamp":0,"observableId":1,"subscriptionId":1}\n')
        sink = NdjsonSink(path)
        sink(subscribed(2, 2))
        sink.close()
        assert len(read_events(path).events) == 2

    def test_reopen_after_rotation(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.ndjson"
        sink = NdjsonSink(path)
        sink(subscribed(1, 1))
        path.rename(tmp_path / "trace.1.ndjson")
        sink.reopen()
        sink(subscribed(1, 2))
        sink.close()
        assert len(read_events(path).events) == 1

    def test_unserializable_value(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.ndjson"
        sink = NdjsonSink(path)
        sink(emitted(1, 1, value=object()))
        sink.close()
        event = read_events(path).events[0]
        assert isinstance(event.value, str)  # type: ignore[union-attr]

    def test_as_bus_sink(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.ndjson"
        sink = NdjsonSink(path)
        bus = EventBus()
        handle = bus.add_sink(sink, name="ndjson")
        for i in range(5):
            bus.publish(emitted(1, 1, ts=i, value=i))
        bus.remove_sink(handle)
        sink.close()
        values = [e.value for e in read_events(path).events]  # type: ignore[union-attr]
        assert values == [0, 1, 2, 3, 4]

    def test_close_twice(self, tmp_path: Path) -> None:
        sink = NdjsonSink(tmp_path / "trace.ndjson")
        sink.close()
        sink.close()
        assert sink.path.name == "trace.ndjson"
