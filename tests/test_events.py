"""Tests for streamtrace.events.model — event records and ordering."""

from __future__ import annotations

import pytest

from streamtrace.events.model import (
    EVENT_TYPES,
    KIND_PRIORITY,
    MISSING,
    StageCreated,
    event_sort_key,
    now_ms,
    sort_events,
)
from tests.conftest import completed, created, emitted, subscribed, unsubscribed


class TestEventRecords:
    """Frozen, slotted event dataclasses."""

    def test_frozen(self) -> None:
        event = subscribed(1, 1)
        with pytest.raises(AttributeError):
            event.stage_id = 2  # type: ignore[misc]

    def test_kind_is_class_level(self) -> None:
        assert StageCreated.kind == "observable-create"
        assert created(1).kind == "observable-create"
        assert emitted(1, 1).kind == "next"

    def test_creation_has_no_subscription(self) -> None:
        assert created(1).subscription_id is None

    def test_payload_defaults_to_missing(self) -> None:
        assert emitted(1, 1).value is MISSING

    def test_missing_is_falsy(self) -> None:
        assert not MISSING
        assert repr(MISSING) == "MISSING"

    def test_equality(self) -> None:
        assert emitted(1, 1, ts=5, value=3) == emitted(1, 1, ts=5, value=3)

    def test_event_types_cover_every_kind(self) -> None:
        assert set(EVENT_TYPES) == set(KIND_PRIORITY)


class TestOrdering:
    """Causal display order: timestamp, stage, subscription, lifecycle."""

    def test_timestamp_first(self) -> None:
        late = subscribed(1, 1, ts=10)
        early = unsubscribed(5, 9, ts=0)
        assert sort_events([late, early]) == [early, late]

    def test_lifecycle_breaks_ties(self) -> None:
        events = [
            unsubscribed(1, 1),
            completed(1, 1),
            emitted(1, 1, value=1),
            subscribed(1, 1),
            created(1),
        ]
        kinds = [e.kind for e in sort_events(events)]
        assert kinds == ["observable-create", "subscribe", "next", "complete", "unsubscribe"]

    def test_priority_is_not_alphabetical(self) -> None:
        assert KIND_PRIORITY["complete"] > KIND_PRIORITY["error"]
        assert KIND_PRIORITY["unsubscribe"] > KIND_PRIORITY["complete"]

    def test_stage_then_subscription(self) -> None:
        a = emitted(2, 1, value=1)
        b = emitted(1, 3, value=1)
        c = emitted(1, 2, value=1)
        assert sort_events([a, b, c]) == [c, b, a]

    def test_full_ties_keep_input_order(self) -> None:
        first = emitted(1, 1, value="x")
        second = emitted(1, 1, value="y")
        assert sort_events([first, second]) == [first, second]

    def test_sort_key_shape(self) -> None:
        assert event_sort_key(created(4, ts=9)) == (9, 4, 0, 0)

    def test_empty(self) -> None:
        assert sort_events([]) == []


class TestClock:
    def test_now_ms_is_wall_clock_milliseconds(self) -> None:
        value = now_ms()
        assert isinstance(value, int)
        # Sometime after 2020-01-01.
        assert value > 1_577_836_800_000
