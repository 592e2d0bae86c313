"""Shared fixtures."""

from datetime import date, datetime, timedelta, timezone

import pytest

from calsense.core.events import Attendee, Event, ResponseStatus

OWNER = "me@example.com"


def at(day: date, hour: float) -> datetime:
    """UTC datetime ``hour`` hours into ``day`` (9.5 -> 09:30)."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc) + timedelta(hours=hour)


def person(email: str, status: ResponseStatus = ResponseStatus.ACCEPTED, **kwargs) -> Attendee:
    return Attendee(email=email, response_status=status, **kwargs)


def me(status: ResponseStatus = ResponseStatus.ACCEPTED) -> Attendee:
    return Attendee(email=OWNER, response_status=status, is_self=True)


@pytest.fixture
def today():
    return date(2025, 1, 15)  # a Wednesday


@pytest.fixture
def make_event(today):
    """Factory for creating events. Meetings get the owner plus one colleague."""
    counter = iter(range(1, 10_000))

    def _make(
        title: str = "Meeting",
        start: float | datetime = 9,
        end: float | datetime | None = 10,
        meeting: bool = True,
        attendees: list[Attendee] | None = None,
        day: date | None = None,
        **fields,
    ) -> Event:
        d = day or today
        if attendees is None:
            attendees = [me(), person("alice@example.com")] if meeting else []
        return Event(
            id=fields.pop("id", f"evt{next(counter)}"),
            title=title,
            start=start if isinstance(start, datetime) else at(d, start),
            end=end if isinstance(end, datetime) or end is None else at(d, end),
            attendees=attendees,
            **fields,
        )

    return _make
