"""Tests for one-on-one relationship tracking."""

from datetime import date, datetime, timezone

import pytest

from calsense.core.events import EventStatus
from calsense.core.relationships import RelationshipStatus, relationship_status, track_relationships

from conftest import OWNER, me, person

NOW = datetime(2025, 2, 1, 12, tzinfo=timezone.utc)


@pytest.fixture
def one_on_one(make_event):
    def _make(email: str, day: date, name: str = "", **fields):
        return make_event(
            f"1:1 {email}",
            10,
            10.5,
            day=day,
            attendees=[me(), person(email, display_name=name)],
            **fields,
        )

    return _make


class TestRelationshipStatus:
    @pytest.mark.parametrize(
        "average_gap,days_since,expected",
        [
            (7, 20, RelationshipStatus.OVERDUE),
            (7, 14, RelationshipStatus.HEALTHY),
            (7, 70, RelationshipStatus.CRITICAL),
            (None, 70, RelationshipStatus.CRITICAL),
            (None, None, RelationshipStatus.CRITICAL),
            (None, 30, RelationshipStatus.HEALTHY),
        ],
    )
    def test_status(self, average_gap, days_since, expected):
        assert relationship_status(average_gap, days_since) is expected

    def test_critical_days_configurable(self):
        assert relationship_status(None, 40, critical_days=30) is RelationshipStatus.CRITICAL


class TestTrackRelationships:
    def test_snapshots_sorted_by_severity(self, one_on_one):
        events = [
            *(one_on_one("alice@example.com", date(2025, 1, d), "Alice") for d in (1, 8, 15, 22)),
            one_on_one("bob@example.com", date(2024, 11, 1)),
            one_on_one("bob@example.com", date(2024, 11, 15)),
            one_on_one("carol@example.com", date(2025, 2, 5)),
            one_on_one("dave@example.com", date(2025, 1, 1)),
            one_on_one("dave@example.com", date(2025, 1, 3)),
        ]

        snapshots = track_relationships(events, OWNER, NOW)

        assert [(s.email, s.status) for s in snapshots] == [
            ("bob@example.com", RelationshipStatus.CRITICAL),
            ("carol@example.com", RelationshipStatus.CRITICAL),
            ("dave@example.com", RelationshipStatus.OVERDUE),
            ("alice@example.com", RelationshipStatus.HEALTHY),
        ]

        alice = snapshots[3]
        assert alice.name == "Alice"
        assert alice.average_gap_days == 7.0
        assert alice.days_since_last == 10.08
        assert alice.days_until_next is None
        assert [e.start.day for e in alice.last_meetings] == [15, 22]

        carol = snapshots[1]
        assert carol.days_since_last is None
        assert carol.days_until_next == 3.92
        assert len(carol.next_meetings) == 1

    def test_only_one_on_ones_with_owner(self, make_event, one_on_one):
        day = date(2025, 1, 20)
        events = [
            make_event("Team", day=day, attendees=[me(), person("a@example.com"), person("b@example.com")]),
            make_event("Others", day=day, attendees=[person("a@example.com"), person("b@example.com")]),
            make_event("Solo", day=day, attendees=[me()]),
            make_event("With room", day=day, attendees=[me(), person("room@resource.calendar.google.com")]),
            one_on_one("gone@example.com", day, status=EventStatus.CANCELLED),
            make_event("Holiday", day=day, all_day=True, attendees=[me(), person("a@example.com")]),
        ]
        assert track_relationships(events, OWNER, NOW) == []

    def test_window(self, one_on_one):
        events = [
            one_on_one("alice@example.com", date(2024, 6, 1)),
            one_on_one("alice@example.com", date(2025, 1, 25)),
        ]
        window = (datetime(2025, 1, 1, tzinfo=timezone.utc), NOW)
        snapshot = track_relationships(events, OWNER, NOW, window=window)[0]
        assert len(snapshot.last_meetings) == 1
        assert snapshot.average_gap_days is None

    def test_recurring_flag(self, one_on_one):
        events = [
            one_on_one("alice@example.com", date(2025, 1, 22), recurring_event_id="s1"),
            one_on_one("bob@example.com", date(2025, 1, 22)),
        ]
        by_email = {s.email: s for s in track_relationships(events, OWNER, NOW)}
        assert by_email["alice@example.com"].is_recurring
        assert not by_email["bob@example.com"].is_recurring
