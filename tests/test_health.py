"""Tests for calendar health scoring."""

import pytest

from calsense.core.health import health_score, interpret_score, meeting_hours, summarize_health

from conftest import OWNER


class TestHealthScore:
    def test_clean_day(self):
        assert health_score(0, 0, 0, 2) == 100

    def test_penalties_and_bonus(self):
        assert health_score(2, 1, 1, 3) == 100 - 30 - 8 + 8

    def test_heavy_and_overloaded_days(self):
        assert health_score(0, 0, 0, 7) == 90
        assert health_score(0, 0, 0, 9) == 70

    def test_clamped(self):
        assert health_score(10, 0, 0, 9) == 0
        assert health_score(0, 0, 5, 0) == 100

    @pytest.mark.parametrize(
        "score,label",
        [(100, "Excellent"), (80, "Excellent"), (79, "Good"), (60, "Good"), (45, "Fair"), (39, "Poor")],
    )
    def test_interpret(self, score, label):
        assert interpret_score(score)[0] == label


class TestSummarizeHealth:
    def test_empty(self):
        summary = summarize_health([])
        assert summary.score == 100
        assert summary.total_events == 0

    def test_busy_morning(self, make_event):
        events = [
            make_event("A", 9, 10),
            make_event("B", 10, 11),
            make_event("C", 11 + 5 / 60, 12),
            make_event("Focus", 12, 13, meeting=False),
            make_event("D", 14.5, 15),
        ]
        summary = summarize_health(events, OWNER)

        assert summary.total_events == 5
        assert summary.total_meetings == 4
        assert summary.back_to_back_count == 1
        assert summary.insufficient_buffer_count == 1
        assert summary.focus_block_count == 0
        assert summary.score == 100 - 15 - 8
        assert summary.label == "Good"
        assert summary.conflicts == []

    def test_meeting_hours_ignores_placeholders(self, make_event):
        events = [make_event("A", 9, 10.5), make_event("Focus", 11, 13, meeting=False)]
        assert meeting_hours(events, OWNER) == 1.5

    def test_conflicts_included(self, make_event):
        summary = summarize_health([make_event("A", 9, 10), make_event("B", 9.5, 10.5)], OWNER)
        assert len(summary.conflicts) == 1
