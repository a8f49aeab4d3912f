"""Tests for streamtrace.render.report — text summary report."""

from __future__ import annotations

from streamtrace.analysis.runs import group_runs
from streamtrace.render.report import render_report, render_runs_report
from tests.conftest import emitted, subscribed


class TestRenderReport:
    """Per-run report blocks."""

    def test_block(self, simple_run: list) -> None:
        lines = render_report("Run 7", simple_run)
        assert lines[:10] == [
            "=== Run 7 ===",
            "Stage 1 (interval):",
            "  subscriptions:    1",
            "  events:           5",
            "  next:             2",
            "  complete:         1",
            "  error:            0",
            "  unsubscribe:      0",
            "  duration:         300ms",
            "  warnings:         (none)",
        ]
        assert "Stage 2 (map):" in lines

    def test_warnings_listed(self) -> None:
        lines = render_report("Run 1", [subscribed(3, 1), emitted(3, 1, ts=1, value=1)])
        assert lines[-2] == "  warnings:"
        assert lines[-1].startswith("    - ⚠ emits values but never completes")

    def test_unlabelled_stage(self) -> None:
        lines = render_report("Run 1", [subscribed(3, 1)])
        assert lines[1] == "Stage 3:"

    def test_no_events(self) -> None:
        assert render_report("Run 1", []) == ["=== Run 1 ===", "  (no events)"]


class TestRenderRunsReport:
    def test_legacy_first(self) -> None:
        groups = group_runs([subscribed(1, 1, run=2), subscribed(1, 1)])
        headings = [line for line in render_runs_report(groups) if line.startswith("===")]
        assert headings == ["=== Legacy events (no runId) ===", "=== Run 2 ==="]

    def test_empty(self) -> None:
        assert render_runs_report(group_runs([])) == ["No events found."]
