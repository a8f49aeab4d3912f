"""Tests for streamtrace.events.log — bounded in-memory event store."""

from __future__ import annotations

import threading

from streamtrace.events.log import EventLog
from tests.conftest import completed, created, emitted, subscribed


class TestEventLog:
    """Ring buffer behaviour and queries."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        assert len(log) == 0
        log.append(subscribed(1, 1))
        assert len(log) == 1

    def test_callable_as_sink(self) -> None:
        log = EventLog()
        log(subscribed(1, 1))
        assert len(log) == 1

    def test_max_events_enforced(self) -> None:
        log = EventLog(max_events=5)
        for i in range(10):
            log.append(emitted(1, 1, ts=i, value=i))
        assert len(log) == 5
        assert log.stats()["dropped"] == 5
        assert log.snapshot()[0].timestamp == 5

    def test_append_many_counts_overflow(self) -> None:
        log = EventLog(max_events=3)
        log.append_many([emitted(1, 1, ts=i) for i in range(4)])
        assert len(log) == 3
        assert log.stats()["dropped"] == 1

    def test_recent(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(emitted(1, 1, ts=i))
        recent = log.recent(3)
        assert [e.timestamp for e in recent] == [2, 3, 4]
        assert log.recent(0) == []

    def test_query_by_kind(self) -> None:
        log = EventLog()
        log.append(subscribed(1, 1))
        log.append(emitted(1, 1, ts=1))
        log.append(completed(1, 1, ts=2))
        results = log.query(kind="next")
        assert len(results) == 1
        assert results[0].kind == "next"

    def test_query_by_stage_and_run(self) -> None:
        log = EventLog()
        log.append(subscribed(1, 1, run=1))
        log.append(subscribed(2, 2, run=1))
        log.append(subscribed(2, 3, run=2))
        assert len(log.query(stage_id=2)) == 2
        assert len(log.query(stage_id=2, run_id=2)) == 1

    def test_query_newest_first_with_limit(self) -> None:
        log = EventLog()
        for i in range(10):
            log.append(emitted(1, 1, ts=i))
        results = log.query(limit=3)
        assert [e.timestamp for e in results] == [9, 8, 7]

    def test_query_since(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(emitted(1, 1, ts=i * 10))
        assert len(log.query(since=25)) == 2

    def test_drain_empties(self) -> None:
        log = EventLog()
        log.append(created(1))
        drained = log.drain()
        assert len(drained) == 1
        assert len(log) == 0

    def test_clear_returns_count(self) -> None:
        log = EventLog()
        log.append(created(1))
        log.append(created(2))
        assert log.clear() == 2
        assert len(log) == 0

    def test_stats(self) -> None:
        log = EventLog(max_events=100)
        log.append(subscribed(1, 1))
        log.append(emitted(1, 1))
        log.append(emitted(1, 1))
        stats = log.stats()
        assert stats["total"] == 3
        assert stats["max_events"] == 100
        assert stats["by_kind"] == {"subscribe": 1, "next": 2}

    def test_concurrent_appends(self) -> None:
        log = EventLog(max_events=10_000)

        def writer() -> None:
            for i in range(500):
                log.append(emitted(1, 1, ts=i))

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(log) == 2000
