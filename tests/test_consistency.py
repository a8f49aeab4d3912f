"""Tests for streamtrace.events.consistency — referential checks."""

from __future__ import annotations

from streamtrace.events.consistency import check_consistency
from tests.conftest import completed, created, emitted, subscribed, unsubscribed


class TestCheckConsistency:
    """Advisory findings over partial and filtered logs."""

    def test_clean_log(self, simple_run: list) -> None:
        assert check_consistency(simple_run) == ()

    def test_empty(self) -> None:
        assert check_consistency([]) == ()

    def test_orphan_subscription(self) -> None:
        issues = check_consistency([emitted(1, 4, value=1), subscribed(1, 4, ts=1)])
        assert [i.code for i in issues] == ["orphan-subscription"]
        assert issues[0].subscription_id == 4
        assert issues[0].index == 0

    def test_unknown_stage_only_with_creations(self) -> None:
        # No creation records at all: a filtered log, nothing to report.
        assert check_consistency([subscribed(3, 1)]) == ()

        issues = check_consistency([created(1), subscribed(3, 1), completed(3, 1, ts=1)])
        assert [i.code for i in issues] == ["unknown-stage"]
        assert issues[0].stage_id == 3

    def test_negative_duration(self) -> None:
        issues = check_consistency([
            subscribed(1, 1, ts=100),
            unsubscribed(1, 1, ts=40),
        ])
        assert [i.code for i in issues] == ["negative-duration"]
        assert "60ms" in issues[0].message

    def test_zero_timestamps_are_fine(self) -> None:
        assert check_consistency([subscribed(1, 1, ts=0), completed(1, 1, ts=0)]) == ()
