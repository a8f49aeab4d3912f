"""Shared test fixtures and event factories for streamtrace."""

from __future__ import annotations

from pathlib import Path

import pytest

from streamtrace.events.model import (
    MISSING,
    Completed,
    Failed,
    StageCreated,
    Subscribed,
    Unsubscribed,
    ValueEmitted,
)

# ---------------------------------------------------------------------------
# Event factories
# ---------------------------------------------------------------------------


def created(
    stage_id: int,
    label: str = "map",
    parent_id: int | None = None,
    ts: int = 0,
    run: int | None = None,
) -> StageCreated:
    return StageCreated(
        stage_id=stage_id, label=label, parent_id=parent_id, timestamp=ts, run_id=run,
    )


def subscribed(stage_id: int, sub: int, ts: int = 0, run: int | None = None) -> Subscribed:
    return Subscribed(stage_id=stage_id, subscription_id=sub, timestamp=ts, run_id=run)


def emitted(
    stage_id: int,
    sub: int,
    ts: int = 0,
    value: object = MISSING,
    run: int | None = None,
) -> ValueEmitted:
    return ValueEmitted(
        stage_id=stage_id, subscription_id=sub, timestamp=ts, value=value, run_id=run,
    )


def failed(
    stage_id: int,
    sub: int,
    ts: int = 0,
    error: object = MISSING,
    run: int | None = None,
) -> Failed:
    return Failed(stage_id=stage_id, subscription_id=sub, timestamp=ts, error=error, run_id=run)


def completed(stage_id: int, sub: int, ts: int = 0, run: int | None = None) -> Completed:
    return Completed(stage_id=stage_id, subscription_id=sub, timestamp=ts, run_id=run)


def unsubscribed(stage_id: int, sub: int, ts: int = 0, run: int | None = None) -> Unsubscribed:
    return Unsubscribed(stage_id=stage_id, subscription_id=sub, timestamp=ts, run_id=run)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def simple_run() -> list:
    """One source stage and one map stage, a single subscription each."""
    return [
        created(1, "interval", ts=0, run=7),
        created(2, "map", parent_id=1, ts=0, run=7),
        subscribed(2, 1, ts=0, run=7),
        subscribed(1, 2, ts=0, run=7),
        emitted(1, 2, ts=100, value=0, run=7),
        emitted(2, 1, ts=100, value=0, run=7),
        emitted(1, 2, ts=200, value=1, run=7),
        emitted(2, 1, ts=200, value=10, run=7),
        completed(1, 2, ts=300, run=7),
        completed(2, 1, ts=300, run=7),
        unsubscribed(2, 1, ts=300, run=7),
    ]


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    """An NDJSON log with a legacy event, two runs, and one malformed line."""
    path = tmp_path / "trace.ndjson"
    path.write_text(
        '{"type":"subscribe","timestamp":5,"observableId":9,"subscriptionId":1}\n'
        '{"type":"observable-create","timestamp":100,"observableId":1,'
        '"operatorInfo":{"name":"interval"},"runId":1}\n'
        '{"type":"subscribe","timestamp":100,"observableId":1,"subscriptionId":1,"runId":1}\n'
        '{"type":"next","timestamp":150,"observableId":1,"subscriptionId":1,"value":1,"runId":1}\n'
        "not json at all\n"
        '{"type":"observable-create","timestamp":1000,"observableId":1,'
        '"operatorInfo":{"name":"of"},"runId":2}\n'
        '{"type":"observable-create","timestamp":1000,"observableId":2,'
        '"operatorInfo":{"name":"map","parent":1},"runId":2}\n'
        '{"type":"subscribe","timestamp":1000,"observableId":2,"subscriptionId":1,"runId":2}\n'
        '{"type":"next","timestamp":1000,"observableId":2,"subscriptionId":1,"value":"a","runId":2}\n'
        '{"type":"complete","timestamp":1010,"observableId":2,"subscriptionId":1,"runId":2}\n'
        '{"type":"unsubscribe","timestamp":1010,"observableId":2,"subscriptionId":1,"runId":2}\n'
    )
    return path
