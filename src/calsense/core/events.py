"""Pure event domain logic - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


class EventStatus(Enum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class ResponseStatus(Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"
    TENTATIVE = "tentative"
    NEEDS_ACTION = "needsAction"


SERVICE_DOMAIN_MARKERS = ("calendar.google.com", "resource.calendar.google.com")


def is_service_email(email: str) -> bool:
    """Resource and group calendars show up as attendees but are not people."""
    email = email.lower()
    return any(marker in email for marker in SERVICE_DOMAIN_MARKERS)


def email_domain(email: str | None) -> str | None:
    if not email:
        return None
    trimmed = email.strip().lower()
    at = trimmed.rfind("@")
    if at == -1 or at == len(trimmed) - 1:
        return None
    return trimmed[at + 1 :]


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp, returning None when it can't be read."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None


@dataclass
class Attendee:
    """An invitee on an event."""

    email: str
    response_status: ResponseStatus = ResponseStatus.NEEDS_ACTION
    is_self: bool = False
    display_name: str = ""
    is_organizer: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "Attendee":
        try:
            status = ResponseStatus(data.get("responseStatus", "needsAction"))
        except ValueError:
            status = ResponseStatus.NEEDS_ACTION
        return cls(
            email=(data.get("email") or "").strip().lower(),
            response_status=status,
            is_self=bool(data.get("self", False)),
            display_name=data.get("displayName", "") or "",
            is_organizer=bool(data.get("organizer", False)),
        )


@dataclass
class Event:
    """A calendar event.

    All-day events carry local midnight of their date in ``start``/``end`` and
    ``all_day=True``; they never take part in interval arithmetic.
    """

    id: str
    title: str
    start: datetime | None
    end: datetime | None
    all_day: bool = False
    attendees: list[Attendee] = field(default_factory=list)
    organizer_email: str = ""
    creator_email: str = ""
    status: EventStatus = EventStatus.CONFIRMED
    recurrence: list[str] = field(default_factory=list)
    recurring_event_id: str | None = None
    ical_uid: str | None = None
    updated: datetime | None = None
    description: str = ""
    location: str = ""

    @property
    def is_cancelled(self) -> bool:
        return self.status is EventStatus.CANCELLED

    @property
    def has_recurrence(self) -> bool:
        return bool(self.recurrence)

    @property
    def is_timed(self) -> bool:
        """True when the event has a usable start and is not all-day."""
        return not self.all_day and self.start is not None

    def duration_minutes(self) -> int | None:
        """Event duration in minutes, or None if start or end is missing."""
        if not self.start or not self.end:
            return None
        return round((self.end - self.start).total_seconds() / 60)

    def people(self) -> list[Attendee]:
        """Attendees that are actual people (service calendars removed)."""
        return [a for a in self.attendees if a.email and not is_service_email(a.email)]

    def is_owner(self, attendee: Attendee, owner_email: str | None = None) -> bool:
        if attendee.is_self:
            return True
        return bool(owner_email) and attendee.email == owner_email.lower()

    def declined_by_owner(self, owner_email: str | None = None) -> bool:
        return any(
            self.is_owner(a, owner_email) and a.response_status is ResponseStatus.DECLINED
            for a in self.attendees
        )

    @classmethod
    def from_api(cls, data: dict, timezone: str = "UTC") -> "Event":
        """Create Event from a Google Calendar API event resource."""
        start_raw = data.get("start") or {}
        end_raw = data.get("end") or {}

        all_day = "date" in start_raw and "dateTime" not in start_raw
        tz = _zone_or_utc(start_raw.get("timeZone") or timezone)
        if all_day:
            start = _parse_all_day(start_raw.get("date"), tz)
            end = _parse_all_day(end_raw.get("date"), tz)
        else:
            # Offset-less times are wall-clock times in the event's zone
            start = _localize(parse_datetime(start_raw.get("dateTime")), tz)
            end = _localize(parse_datetime(end_raw.get("dateTime")), tz)

        try:
            status = EventStatus(data.get("status", "confirmed"))
        except ValueError:
            status = EventStatus.CONFIRMED

        return cls(
            id=data.get("id", ""),
            title=data.get("summary", "") or "Untitled",
            start=start,
            end=end,
            all_day=all_day,
            attendees=[Attendee.from_api(a) for a in data.get("attendees", []) or []],
            organizer_email=((data.get("organizer") or {}).get("email") or "").lower(),
            creator_email=((data.get("creator") or {}).get("email") or "").lower(),
            status=status,
            recurrence=list(data.get("recurrence") or []),
            recurring_event_id=data.get("recurringEventId"),
            ical_uid=data.get("iCalUID"),
            updated=_localize(parse_datetime(data.get("updated")), ZoneInfo("UTC")),
            description=data.get("description", "") or "",
            location=data.get("location", "") or "",
        )


def _zone_or_utc(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using UTC")
        return ZoneInfo("UTC")


def _localize(value: datetime | None, tz: ZoneInfo) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def _parse_all_day(value: str | None, tz: ZoneInfo) -> datetime | None:
    if not value:
        return None
    try:
        d = date.fromisoformat(value)
    except ValueError:
        return None
    return datetime(d.year, d.month, d.day, tzinfo=tz)


def is_meeting(event: Event, owner_email: str | None = None) -> bool:
    """
    Whether an event is a genuine meeting rather than a solo placeholder.

    A meeting has more than one person on it, so at least one besides
    whoever put it on the calendar. When the only attendee listed is not the
    owner, the owner is implied and it still counts.
    """
    people = event.people()
    if len(people) > 1:
        return True
    if len(people) == 1 and owner_email:
        return not event.is_owner(people[0], owner_email)
    return False


def timed_events(events: list[Event]) -> list[Event]:
    """Timed events with a usable start, sorted by start."""
    return sorted(
        (e for e in events if e.is_timed),
        key=lambda e: e.start,
    )
