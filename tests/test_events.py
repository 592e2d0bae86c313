"""Tests for the event model."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from calsense.core.events import (
    Attendee,
    Event,
    EventStatus,
    ResponseStatus,
    email_domain,
    is_meeting,
    is_service_email,
    parse_datetime,
    timed_events,
)

from conftest import OWNER, me, person


class TestParsing:
    def test_parse_datetime_with_z(self):
        assert parse_datetime("2025-01-15T10:00:00Z") == datetime(2025, 1, 15, 10, tzinfo=timezone.utc)

    def test_parse_datetime_with_offset(self):
        dt = parse_datetime("2025-01-15T10:00:00-05:00")
        assert dt.utcoffset().total_seconds() == -5 * 3600

    def test_parse_datetime_garbage(self):
        assert parse_datetime("next tuesday") is None
        assert parse_datetime(None) is None
        assert parse_datetime("") is None

    def test_email_domain(self):
        assert email_domain("Bob@Example.COM") == "example.com"
        assert email_domain("no-at-sign") is None
        assert email_domain("trailing@") is None
        assert email_domain(None) is None

    def test_service_email(self):
        assert is_service_email("c_123@resource.calendar.google.com")
        assert is_service_email("team@group.calendar.google.com")
        assert not is_service_email("alice@example.com")


class TestFromApi:
    def test_timed_event(self):
        event = Event.from_api(
            {
                "id": "abc",
                "summary": "Standup",
                "start": {"dateTime": "2025-01-15T10:00:00-05:00"},
                "end": {"dateTime": "2025-01-15T10:30:00-05:00"},
                "organizer": {"email": "Boss@Example.com"},
                "attendees": [
                    {"email": "me@example.com", "self": True, "responseStatus": "accepted"},
                    {"email": "Alice@Example.com", "displayName": "Alice"},
                ],
                "recurringEventId": "series1",
                "iCalUID": "uid1@google.com",
                "updated": "2025-01-01T00:00:00Z",
                "description": "Agenda",
            }
        )

        assert event.id == "abc"
        assert event.title == "Standup"
        assert event.all_day is False
        assert event.duration_minutes() == 30
        assert event.organizer_email == "boss@example.com"
        assert event.attendees[0].is_self
        assert event.attendees[1].email == "alice@example.com"
        assert event.attendees[1].response_status is ResponseStatus.NEEDS_ACTION
        assert event.recurring_event_id == "series1"
        assert event.ical_uid == "uid1@google.com"
        assert event.updated == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_all_day_event_is_local_midnight(self):
        event = Event.from_api(
            {"summary": "Holiday", "start": {"date": "2025-01-15"}, "end": {"date": "2025-01-16"}},
            timezone="America/Toronto",
        )
        assert event.all_day is True
        assert event.start == datetime(2025, 1, 15, tzinfo=ZoneInfo("America/Toronto"))
        assert not event.is_timed

    def test_missing_fields_default(self):
        event = Event.from_api({"status": "bogus"})
        assert event.title == "Untitled"
        assert event.start is None
        assert event.status is EventStatus.CONFIRMED
        assert event.duration_minutes() is None

    def test_cancelled(self):
        event = Event.from_api({"status": "cancelled", "start": {"dateTime": "2025-01-15T10:00:00Z"}})
        assert event.is_cancelled

    def test_unknown_all_day_zone_falls_back_to_utc(self):
        event = Event.from_api({"start": {"date": "2025-01-15"}, "end": {"date": "2025-01-16"}}, timezone="Mars/Olympus")
        assert event.start == datetime(2025, 1, 15, tzinfo=ZoneInfo("UTC"))

    def test_offsetless_times_use_event_zone(self):
        event = Event.from_api(
            {
                "start": {"dateTime": "2025-01-15T09:00:00", "timeZone": "America/Toronto"},
                "end": {"dateTime": "2025-01-15T10:00:00", "timeZone": "America/Toronto"},
            }
        )
        assert event.start == datetime(2025, 1, 15, 14, tzinfo=timezone.utc)
        assert event.duration_minutes() == 60

    def test_offsetless_times_fall_back_to_calendar_zone(self):
        event = Event.from_api(
            {"start": {"dateTime": "2025-01-15T09:00:00"}, "end": {"dateTime": "2025-01-15T09:30:00"}},
            timezone="Asia/Tokyo",
        )
        assert event.start == datetime(2025, 1, 15, 0, tzinfo=timezone.utc)
        assert event.end.tzinfo is not None

    def test_offsetless_times_mix_with_utc_times(self):
        naive = Event.from_api(
            {"id": "a", "start": {"dateTime": "2025-01-15T10:00:00"}, "end": {"dateTime": "2025-01-15T11:00:00"}}
        )
        utc = Event.from_api(
            {"id": "b", "start": {"dateTime": "2025-01-15T09:00:00Z"}, "end": {"dateTime": "2025-01-15T10:00:00Z"}}
        )
        assert [e.id for e in timed_events([naive, utc])] == ["b", "a"]


class TestIsMeeting:
    def test_no_attendees_is_placeholder(self, make_event):
        assert not is_meeting(make_event("Focus Time", meeting=False))

    def test_only_owner_is_placeholder(self, make_event):
        assert not is_meeting(make_event("Lunch", attendees=[me()]), OWNER)

    def test_owner_and_colleague(self, make_event):
        assert is_meeting(make_event(), OWNER)

    def test_single_other_attendee_implies_owner(self, make_event):
        event = make_event(attendees=[person("alice@example.com")])
        assert is_meeting(event, OWNER)

    def test_service_attendees_do_not_count(self, make_event):
        event = make_event(attendees=[me(), person("room@resource.calendar.google.com")])
        assert not is_meeting(event, OWNER)

    def test_two_people_without_owner_email(self, make_event):
        event = make_event(attendees=[person("a@example.com"), person("b@example.com")])
        assert is_meeting(event)


class TestHelpers:
    def test_declined_by_owner(self, make_event):
        event = make_event(attendees=[me(ResponseStatus.DECLINED), person("alice@example.com")])
        assert event.declined_by_owner()

    def test_declined_by_owner_email(self, make_event):
        event = make_event(attendees=[Attendee(OWNER, ResponseStatus.DECLINED), person("alice@example.com")])
        assert event.declined_by_owner(OWNER)
        assert not event.declined_by_owner()

    def test_timed_events_sorted_without_all_day(self, make_event):
        late = make_event("Late", 14, 15)
        early = make_event("Early", 9, 10)
        all_day = make_event("Holiday", 0, 24, all_day=True)
        assert timed_events([late, all_day, early]) == [early, late]
