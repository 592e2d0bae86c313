"""Availability search across timezones - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo

from .errors import InvalidRequestError
from .events import Event, parse_datetime
from .intervals import Interval, clamp_interval, collect_busy_intervals
from .results import SlotResult
from .timezones import format_in_zone, resolve_zone, within_hours, zone_label

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 30
MAX_SLOTS = 20
WORK_START_HOUR = 9
WORK_END_HOUR = 17
DEFAULT_BASELINE_WORK_WEEK_HOURS = 40

UTC = ZoneInfo("UTC")


class DateRange(Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEK = "this_week"
    NEXT_WEEK = "next_week"
    THIS_MONTH = "this_month"
    NEXT_MONTH = "next_month"
    CUSTOM = "custom"


@dataclass
class TimezoneConstraint:
    """Someone else's working window that a slot must also respect."""

    timezone: str
    hours_start: float = WORK_START_HOUR
    hours_end: float = WORK_END_HOUR

    @classmethod
    def from_dict(cls, data: dict) -> "TimezoneConstraint":
        if not isinstance(data, dict) or not data.get("timezone"):
            raise InvalidRequestError("timezone_constraints", "each constraint needs a timezone")

        hours_start = data.get("hoursStart", data.get("hours_start", WORK_START_HOUR))
        hours_end = data.get("hoursEnd", data.get("hours_end", WORK_END_HOUR))
        try:
            hours_start = float(hours_start)
            hours_end = float(hours_end)
        except (TypeError, ValueError):
            raise InvalidRequestError("timezone_constraints", "hours must be numbers") from None
        if not 0 <= hours_start < hours_end <= 24:
            raise InvalidRequestError(
                "timezone_constraints",
                f"invalid working window {hours_start}-{hours_end} for {data['timezone']}",
            )
        return cls(timezone=str(data["timezone"]), hours_start=hours_start, hours_end=hours_end)


@dataclass
class AvailabilityRequest:
    """A structured "find me time" request."""

    date_range: DateRange | None = None
    custom_dates: list[date] = field(default_factory=list)
    duration: int = DEFAULT_DURATION
    timezone_constraints: list[TimezoneConstraint] = field(default_factory=list)
    working_hours_only: bool = False
    owner_email: str | None = None
    baseline_work_week_hours: float = DEFAULT_BASELINE_WORK_WEEK_HOURS
    max_slots: int | None = MAX_SLOTS
    work_hours: tuple[float, float] = (WORK_START_HOUR, WORK_END_HOUR)

    @property
    def enforces_working_hours(self) -> bool:
        return self.working_hours_only or bool(self.timezone_constraints)

    @classmethod
    def from_dict(cls, data: dict) -> "AvailabilityRequest":
        """
        Build a request from intent parameters.

        Raises InvalidRequestError on the first parameter that can't be used.
        """
        date_range = None
        if data.get("date_range"):
            try:
                date_range = DateRange(data["date_range"])
            except ValueError:
                raise InvalidRequestError("date_range", f"unknown range {data['date_range']!r}") from None

        custom_dates = [_parse_custom_date(value) for value in data.get("custom_dates") or []]

        duration = data.get("duration")
        if duration is None:
            duration = DEFAULT_DURATION
        elif isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration <= 0:
            raise InvalidRequestError("duration", f"expected a positive number of minutes, got {duration!r}")

        max_slots = data.get("max_slots", MAX_SLOTS)
        if max_slots is not None and (not isinstance(max_slots, int) or max_slots <= 0):
            raise InvalidRequestError("max_slots", f"expected a positive integer, got {max_slots!r}")

        baseline = data.get("baseline_work_week_hours", DEFAULT_BASELINE_WORK_WEEK_HOURS)
        if not isinstance(baseline, (int, float)) or baseline < 0:
            raise InvalidRequestError("baseline_work_week_hours", f"expected hours, got {baseline!r}")

        work_hours = _parse_work_hours(data.get("work_hours"))

        return cls(
            date_range=date_range,
            custom_dates=custom_dates,
            duration=int(duration),
            timezone_constraints=[
                TimezoneConstraint.from_dict(c) for c in data.get("timezone_constraints") or []
            ],
            working_hours_only=bool(data.get("working_hours_only", False)),
            owner_email=(data.get("owner_email") or None),
            baseline_work_week_hours=baseline,
            max_slots=max_slots,
            work_hours=work_hours,
        )


def _parse_work_hours(value) -> tuple[float, float]:
    if value is None:
        return (WORK_START_HOUR, WORK_END_HOUR)
    try:
        start, end = (float(v) for v in value)
    except (TypeError, ValueError):
        raise InvalidRequestError("work_hours", f"expected (start, end) hours, got {value!r}") from None
    if not 0 <= start < end <= 24:
        raise InvalidRequestError("work_hours", f"invalid working window {start}-{end}")
    return (start, end)


def _parse_custom_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        dt = parse_datetime(value)
        if dt is not None:
            return dt.date()
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise InvalidRequestError("custom_dates", f"unparseable date {value!r}")


@dataclass
class DateWindow:
    """A concrete [start, end) search window."""

    start: datetime
    end: datetime
    label: str


@dataclass
class ZoneLabel:
    timezone: str
    formatted: str


@dataclass
class SlotSuggestion:
    """A bookable slot, labelled in every zone involved."""

    start: datetime
    end: datetime
    duration_minutes: int
    labels: list[ZoneLabel] = field(default_factory=list)


def _day_start(d: date, tz: tzinfo) -> datetime:
    return datetime.combine(d, time(0, 0), tzinfo=tz)


def _first_of_next_month(d: date) -> date:
    return (d.replace(day=1) + timedelta(days=32)).replace(day=1)


def resolve_date_range(
    request: AvailabilityRequest,
    now: datetime,
    timezone: str = "UTC",
    view_window: tuple[datetime, datetime] | None = None,
) -> DateWindow:
    """
    Map a semantic date range onto concrete bounds in the requester's zone.

    Custom dates win over the named range. With neither, the caller's view
    window is used, then the current week.
    """
    tz = resolve_zone(timezone)
    local_now = now.astimezone(tz) if now.tzinfo else now.replace(tzinfo=tz)
    today = local_now.date()

    def window(label: str, first: date, after_last: date) -> DateWindow:
        return DateWindow(_day_start(first, tz), _day_start(after_last, tz), label)

    if request.custom_dates:
        dates = sorted(request.custom_dates)
        return window("Custom Dates", dates[0], dates[-1] + timedelta(days=1))

    monday = today - timedelta(days=today.weekday())

    match request.date_range:
        case DateRange.TODAY:
            return window("Today", today, today + timedelta(days=1))
        case DateRange.TOMORROW:
            tomorrow = today + timedelta(days=1)
            return window("Tomorrow", tomorrow, tomorrow + timedelta(days=1))
        case DateRange.THIS_WEEK:
            return window("This Week", monday, monday + timedelta(days=7))
        case DateRange.NEXT_WEEK:
            return window("Next Week", monday + timedelta(days=7), monday + timedelta(days=14))
        case DateRange.THIS_MONTH:
            first = today.replace(day=1)
            return window("This Month", first, _first_of_next_month(first))
        case DateRange.NEXT_MONTH:
            first = _first_of_next_month(today)
            return window("Next Month", first, _first_of_next_month(first))

    if view_window is not None:
        return DateWindow(view_window[0], view_window[1], "Current View")
    return window("This Week", monday, monday + timedelta(days=7))


def free_between(busy: list[Interval], start: datetime, end: datetime) -> list[Interval]:
    """Complement of the busy intervals inside [start, end)."""
    free = []
    pointer = start
    for interval in busy:
        clamped = clamp_interval(interval, start, end)
        if clamped is None:
            continue
        if clamped.start > pointer:
            free.append(Interval(pointer, clamped.start))
        pointer = max(pointer, clamped.end)

    if pointer < end:
        free.append(Interval(pointer, end))
    return free


def daily_free_intervals(busy: list[Interval], window: DateWindow, tz: tzinfo) -> list[Interval]:
    """
    Free intervals for each calendar day of the window.

    Pure function - no I/O. Busy intervals must be merged and sorted.
    """
    free = []
    day = window.start.astimezone(tz).date()
    while _day_start(day, tz) < window.end:
        day_start = max(_day_start(day, tz), window.start)
        day_end = min(_day_start(day + timedelta(days=1), tz), window.end)
        if day_start < day_end:
            free.extend(free_between(busy, day_start, day_end))
        day += timedelta(days=1)
    return free


def meets_constraints(
    start: datetime,
    end: datetime,
    timezone: str,
    constraints: list[TimezoneConstraint],
    working_hours_only: bool,
    work_hours: tuple[float, float] = (WORK_START_HOUR, WORK_END_HOUR),
) -> bool:
    """Whether a slot fits the requester's hours and every constraint zone's hours."""
    if working_hours_only or constraints:
        base_start, base_end = work_hours
    else:
        base_start, base_end = 0, 24

    if not within_hours(start, end, timezone, base_start, base_end):
        return False
    return all(
        within_hours(start, end, c.timezone, c.hours_start, c.hours_end) for c in constraints
    )


def build_slot(
    start: datetime,
    duration: int,
    timezone: str,
    constraints: list[TimezoneConstraint],
    working_hours_only: bool,
    work_hours: tuple[float, float] = (WORK_START_HOUR, WORK_END_HOUR),
) -> SlotSuggestion | None:
    """A labelled slot starting at ``start``, or None if it breaks a constraint."""
    end = start + timedelta(minutes=duration)
    if not meets_constraints(start, end, timezone, constraints, working_hours_only, work_hours):
        return None

    labels = []
    seen = set()
    for zone in [timezone, *(c.timezone for c in constraints)]:
        name = zone_label(zone)
        if name in seen:
            continue
        seen.add(name)
        labels.append(ZoneLabel(timezone=name, formatted=format_in_zone(start, zone)))

    return SlotSuggestion(start=start, end=end, duration_minutes=duration, labels=labels)


def find_available_slots(
    events: list[Event],
    request: AvailabilityRequest,
    now: datetime,
    timezone: str = "UTC",
    view_window: tuple[datetime, datetime] | None = None,
) -> SlotResult:
    """
    Enumerate open slots of ``request.duration`` minutes.

    Each free interval is walked in steps of the duration from its start;
    a candidate is kept when it fits the interval and every working window.
    Stops once ``request.max_slots`` slots have been found.
    """
    tz = resolve_zone(timezone)
    window = resolve_date_range(request, now, timezone, view_window)
    busy = collect_busy_intervals(
        events, window.start, window.end, owner_email=request.owner_email, tz=tz
    )
    free = daily_free_intervals(busy, window, tz)
    step = timedelta(minutes=request.duration)
    working_hours_only = request.enforces_working_hours

    result = SlotResult(
        window=window,
        duration_minutes=request.duration,
        working_hours_only=working_hours_only,
        timezone_constraints=list(request.timezone_constraints),
    )

    for interval in free:
        # Step in UTC so DST transitions don't stretch or shrink a step
        pointer = interval.start.astimezone(UTC)
        end = interval.end.astimezone(UTC)
        while pointer + step <= end:
            slot = build_slot(
                pointer,
                request.duration,
                timezone,
                request.timezone_constraints,
                working_hours_only,
                request.work_hours,
            )
            if slot is not None:
                result.slots.append(slot)
                if request.max_slots and len(result.slots) >= request.max_slots:
                    logger.debug(f"Slot cap of {request.max_slots} reached")
                    return result
            pointer += step

    return result
