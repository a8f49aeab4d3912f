"""Tests for streamtrace.events.codec — wire records and log framing."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from streamtrace._errors import EventFormatError, LogReadError
from streamtrace.events.codec import (
    UNKNOWN_LABEL,
    decode_record,
    dumps_array,
    dumps_ndjson,
    encode_event,
    encode_line,
    jsonable,
    load_events,
    read_events,
)
from streamtrace.events.model import (
    MISSING,
    Completed,
    Failed,
    StageCreated,
    Subscribed,
    ValueEmitted,
)
from tests.conftest import created, emitted, failed, subscribed


# ---------------------------------------------------------------------------
# decode_record
# ---------------------------------------------------------------------------


class TestDecodeRecord:
    """Single-record validation and conversion."""

    def test_subscribe(self) -> None:
        event = decode_record(
            {"type": "subscribe", "timestamp": 10, "observableId": 2, "subscriptionId": 3}
        )
        assert event == Subscribed(stage_id=2, subscription_id=3, timestamp=10)

    def test_next_with_value(self) -> None:
        event = decode_record(
            {"type": "next", "timestamp": 1, "observableId": 1, "subscriptionId": 1,
             "value": {"a": [1, 2]}, "runId": 99}
        )
        assert isinstance(event, ValueEmitted)
        assert event.value == {"a": [1, 2]}
        assert event.run_id == 99

    def test_next_without_value_is_missing(self) -> None:
        event = decode_record({"type": "next", "timestamp": 1, "observableId": 1, "subscriptionId": 1})
        assert isinstance(event, ValueEmitted)
        assert event.value is MISSING

    def test_null_value_is_kept(self) -> None:
        event = decode_record(
            {"type": "next", "timestamp": 1, "observableId": 1, "subscriptionId": 1, "value": None}
        )
        assert event.value is None  # type: ignore[union-attr]

    def test_error_payload(self) -> None:
        event = decode_record(
            {"type": "error", "timestamp": 1, "observableId": 1, "subscriptionId": 1,
             "error": "Error: boom"}
        )
        assert isinstance(event, Failed)
        assert event.error == "Error: boom"

    def test_creation_operator_info(self) -> None:
        event = decode_record(
            {"type": "observable-create", "timestamp": 0, "observableId": 4,
             "operatorInfo": {"name": "filter", "parent": 3}}
        )
        assert event == StageCreated(stage_id=4, label="filter", parent_id=3, timestamp=0)

    def test_creation_alternate_shape(self) -> None:
        event = decode_record(
            {"kind": "observable-create", "timestamp": 0, "stageId": 4,
             "label": "tap", "parentId": 1}
        )
        assert isinstance(event, StageCreated)
        assert event.label == "tap"
        assert event.parent_id == 1

    def test_creation_without_label(self) -> None:
        event = decode_record({"type": "observable-create", "timestamp": 0, "observableId": 1})
        assert event.label == UNKNOWN_LABEL  # type: ignore[union-attr]
        assert event.parent_id is None  # type: ignore[union-attr]

    def test_integral_float_accepted(self) -> None:
        event = decode_record(
            {"type": "complete", "timestamp": 12.0, "observableId": 1, "subscriptionId": 1}
        )
        assert isinstance(event, Completed)
        assert event.timestamp == 12

    @pytest.mark.parametrize(
        "record",
        [
            [],
            "subscribe",
            {"type": "bogus", "timestamp": 0, "observableId": 1, "subscriptionId": 1},
            {"type": ["next"], "timestamp": 0, "observableId": 1, "subscriptionId": 1},
            {"timestamp": 0, "observableId": 1, "subscriptionId": 1},
            {"type": "subscribe", "observableId": 1, "subscriptionId": 1},
            {"type": "subscribe", "timestamp": 0, "subscriptionId": 1},
            {"type": "subscribe", "timestamp": 0, "observableId": 1},
            {"type": "subscribe", "timestamp": "0", "observableId": 1, "subscriptionId": 1},
            {"type": "subscribe", "timestamp": 1.5, "observableId": 1, "subscriptionId": 1},
            {"type": "subscribe", "timestamp": True, "observableId": 1, "subscriptionId": 1},
            {"type": "complete", "timestamp": 0, "observableId": 1, "subscriptionId": 1,
             "value": 3},
            {"type": "next", "timestamp": 0, "observableId": 1, "subscriptionId": 1,
             "error": "x"},
            {"type": "observable-create", "timestamp": 0, "observableId": 1,
             "subscriptionId": 1},
            {"type": "subscribe", "timestamp": 0, "observableId": 1, "subscriptionId": 1,
             "operatorInfo": {"name": "map"}},
            {"type": "next", "timestamp": 0, "observableId": 1, "subscriptionId": 1,
             "label": "map"},
            {"type": "complete", "timestamp": 0, "observableId": 1, "subscriptionId": 1,
             "parentId": 2},
        ],
    )
    def test_malformed(self, record: object) -> None:
        with pytest.raises(EventFormatError):
            decode_record(record)


# ---------------------------------------------------------------------------
# load_events / read_events
# ---------------------------------------------------------------------------


class TestLoadEvents:
    """Framing detection and skip counting."""

    def test_ndjson(self) -> None:
        text = (
            '{"type":"subscribe","timestamp":0,"observableId":1,"subscriptionId":1}\n'
            "\n"
            '{"type":"complete","timestamp":5,"observableId":1,"subscriptionId":1}\n'
        )
        result = load_events(text)
        assert [e.kind for e in result.events] == ["subscribe", "complete"]
        assert result.skipped == 0
        assert len(result) == 2

    def test_array(self) -> None:
        text = json.dumps([
            {"type": "subscribe", "timestamp": 0, "observableId": 1, "subscriptionId": 1},
            {"type": "nope"},
        ])
        result = load_events("  \n" + text)
        assert len(result.events) == 1
        assert result.skipped == 1

    def test_bad_lines_are_skipped(self) -> None:
        text = (
            "{not json\n"
            '{"type":"subscribe","timestamp":0,"observableId":1,"subscriptionId":1}\n'
            '{"type":"unknown-kind","timestamp":0,"observableId":1,"subscriptionId":1}\n'
        )
        result = load_events(text)
        assert len(result.events) == 1
        assert result.skipped == 2

    def test_broken_array_counts_once(self) -> None:
        result = load_events('[{"type": "subscribe",')
        assert result.events == ()
        assert result.skipped == 1

    def test_empty_text(self) -> None:
        result = load_events("")
        assert result.events == ()
        assert result.skipped == 0

    def test_crlf_lines(self) -> None:
        text = '{"type":"subscribe","timestamp":0,"observableId":1,"subscriptionId":1}\r\n'
        assert len(load_events(text).events) == 1

    def test_read_events(self, log_file: Path) -> None:
        result = read_events(log_file)
        assert len(result.events) == 10
        assert result.skipped == 1

    def test_byte_order_mark_before_array(self) -> None:
        text = "\ufeff" + json.dumps([
            {"type": "subscribe", "timestamp": 0, "observableId": 1, "subscriptionId": 1},
        ])
        result = load_events(text)
        assert len(result.events) == 1
        assert result.skipped == 0

    def test_read_array_file_with_byte_order_mark(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.json"
        record = {"type": "subscribe", "timestamp": 0, "observableId": 1, "subscriptionId": 1}
        path.write_text(json.dumps([record]), encoding="utf-8-sig")
        result = read_events(path)
        assert len(result.events) == 1
        assert result.skipped == 0

    def test_read_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LogReadError, match="cannot read"):
            read_events(tmp_path / "absent.ndjson")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestEncoding:
    """Events back to flat wire records."""

    def test_creation_record(self) -> None:
        record = encode_event(created(2, "map", parent_id=1, ts=3, run=5))
        assert record == {
            "type": "observable-create",
            "timestamp": 3,
            "observableId": 2,
            "runId": 5,
            "operatorInfo": {"name": "map", "parent": 1},
        }

    def test_missing_payload_is_omitted(self) -> None:
        record = encode_event(emitted(1, 1))
        assert "value" not in record
        assert "runId" not in record

    def test_exception_payload(self) -> None:
        record = encode_event(failed(1, 1, error=ValueError("boom")))
        assert record["error"] == "ValueError: boom"

    def test_unserializable_value_falls_back_to_str(self) -> None:
        assert jsonable({1, 2}) in ("{1, 2}", "{2, 1}")
        assert jsonable([1, "a"]) == [1, "a"]

    def test_line_is_compact(self) -> None:
        line = encode_line(subscribed(1, 2, ts=3))
        assert " " not in line
        assert "\n" not in line

    def test_ndjson_reloads(self) -> None:
        events = [created(1, "of"), subscribed(1, 1), emitted(1, 1, ts=1, value="v")]
        assert load_events(dumps_ndjson(events)).events == tuple(events)

    def test_array_reloads(self) -> None:
        events = [subscribed(1, 1), failed(1, 1, ts=2, error="bad")]
        assert load_events(dumps_array(events)).events == tuple(events)
