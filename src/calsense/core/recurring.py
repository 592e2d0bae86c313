"""Recurring series fingerprinting and metrics - no I/O dependencies."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .events import Event, ResponseStatus, email_domain, is_service_email

logger = logging.getLogger(__name__)

PEOPLE_MINUTES_THRESHOLD = 2400
STALE_MONTHS = 6
MEASUREMENT_DAYS = 30
DURATION_BUCKET_MINUTES = 15
MIN_HEURISTIC_INSTANCES = 2

# Providers append _R<date>[T<time>] to the uid of instances split off a series
_MODIFICATION_SUFFIX = re.compile(r"_R\d{8}(?:T\d{6})?(?=@|$)")
_WHITESPACE = re.compile(r"\s+")


class Cadence(Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    BI_WEEKLY = "Bi-Weekly"
    MONTHLY = "Monthly"
    IRREGULAR = "Irregular"


class SeriesFlag(Enum):
    HIGH_PEOPLE_HOURS = "high-people-hours"
    EXTERNAL_NO_END = "external-no-end"
    STALE = "stale"


class RangeMode(Enum):
    RETRO = "retro"
    FORWARD = "forward"


@dataclass
class RecurrenceRule:
    freq: str
    interval: int = 1
    until: str | None = None
    count: int | None = None

    @property
    def has_end(self) -> bool:
        return self.until is not None or self.count is not None


@dataclass
class SeriesOptions:
    """Knobs for series resolution. ``now`` is required for determinism."""

    now: datetime
    owner_email: str | None = None
    window_start: datetime | None = None
    window_end: datetime | None = None
    range_mode: RangeMode = RangeMode.RETRO
    people_minutes_threshold: int = PEOPLE_MINUTES_THRESHOLD
    stale_months: int = STALE_MONTHS
    min_heuristic_instances: int = MIN_HEURISTIC_INSTANCES


@dataclass
class SeriesMetrics:
    duration_minutes: float
    weekly_minutes: float
    monthly_minutes: float
    actual_monthly_minutes: float
    people_hours_per_month: float
    internal_attendee_count: int
    external_attendee_count: int
    average_attendance: float
    acceptance_rate: float
    cancellation_rate: float
    agenda_missing: bool
    last_updated: datetime | None
    total_instances: int

    @property
    def attendee_count(self) -> int:
        return self.internal_attendee_count + self.external_attendee_count


@dataclass
class SeriesGroup:
    """Instances believed to be the same recurring commitment."""

    key: str
    events: list[Event]
    title: str
    organizer_email: str
    cadence: Cadence
    average_gap_days: float | None
    metrics: SeriesMetrics
    flags: list[SeriesFlag] = field(default_factory=list)
    last_occurrence: datetime | None = None
    next_occurrence: datetime | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.metrics.attendee_count == 0


# --- Series keys -----------------------------------------------------------


def base_uid(uid: str) -> str:
    """Strip a provider modification suffix from a calendar uid."""
    return _MODIFICATION_SUFFIX.sub("", uid)


def has_modification_suffix(uid: str | None) -> bool:
    return bool(uid) and _MODIFICATION_SUFFIX.search(uid) is not None


def uid_key(event: Event) -> str | None:
    # Every provider event has a uid; it only identifies a series when linked
    if not event.ical_uid or not _is_linked(event):
        return None
    return f"uid:{base_uid(event.ical_uid)}"


def series_reference_key(event: Event) -> str | None:
    if not event.recurring_event_id:
        return None
    return f"series:{event.recurring_event_id}"


def master_key(event: Event) -> str | None:
    # Same namespace as series_reference_key so a master lands with its instances
    if not event.has_recurrence or not event.id:
        return None
    return f"series:{event.id}"


def heuristic_key(event: Event) -> str | None:
    duration = event.duration_minutes()
    if duration is None:
        return None
    title = _WHITESPACE.sub(" ", event.title.strip().lower())
    bucket = round(duration / DURATION_BUCKET_MINUTES) * DURATION_BUCKET_MINUTES
    return f"heuristic:{title}|{event.organizer_email.lower()}|{bucket}"


KeyStrategy = Callable[[Event], str | None]

KEY_STRATEGIES: tuple[KeyStrategy, ...] = (
    uid_key,
    series_reference_key,
    master_key,
    heuristic_key,
)


def series_key(event: Event, strategies: tuple[KeyStrategy, ...] = KEY_STRATEGIES) -> str | None:
    """First non-empty key produced by the strategies, in order."""
    for strategy in strategies:
        key = strategy(event)
        if key:
            return key
    return None


def _is_linked(event: Event) -> bool:
    return (
        event.has_recurrence
        or bool(event.recurring_event_id)
        or has_modification_suffix(event.ical_uid)
    )


def group_events(events: list[Event], min_heuristic_instances: int = MIN_HEURISTIC_INSTANCES) -> dict[str, list[Event]]:
    """
    Group timed events into candidate series.

    A group survives when one of its events carries series linkage, or when
    it has at least ``min_heuristic_instances`` members.
    """
    groups: dict[str, list[Event]] = {}
    for event in events:
        if not event.is_timed:
            continue
        key = series_key(event)
        if key is None:
            continue
        groups.setdefault(key, []).append(event)

    return {
        key: members
        for key, members in groups.items()
        if any(_is_linked(e) for e in members) or len(members) >= min_heuristic_instances
    }


# --- Cadence ---------------------------------------------------------------


def parse_rrule(rules: list[str]) -> RecurrenceRule | None:
    """Parse the first RRULE line, or None if there is none or it's unusable."""
    for rule in rules:
        if not rule.upper().startswith("RRULE"):
            continue
        _, _, body = rule.partition(":")
        parts = {}
        for part in body.split(";"):
            if "=" in part:
                name, _, value = part.partition("=")
                parts[name.strip().upper()] = value.strip()

        freq = parts.get("FREQ")
        if not freq:
            logger.warning(f"Recurrence rule without FREQ: {rule!r}")
            return None
        try:
            interval = int(parts.get("INTERVAL", "1"))
        except ValueError:
            interval = 1
        try:
            count = int(parts["COUNT"]) if "COUNT" in parts else None
        except ValueError:
            count = None
        return RecurrenceRule(freq=freq.upper(), interval=interval, until=parts.get("UNTIL"), count=count)
    return None


def cadence_from_rule(rule: RecurrenceRule | None) -> Cadence | None:
    if rule is None:
        return None
    match rule.freq:
        case "DAILY":
            return Cadence.DAILY
        case "WEEKLY":
            return Cadence.BI_WEEKLY if rule.interval == 2 else Cadence.WEEKLY
        case "MONTHLY":
            return Cadence.MONTHLY
    return None


def cadence_from_gap(average_gap_days: float | None) -> Cadence:
    if not average_gap_days or average_gap_days <= 0:
        return Cadence.IRREGULAR
    if average_gap_days <= 2:
        return Cadence.DAILY
    if average_gap_days <= 10:
        return Cadence.WEEKLY
    if average_gap_days <= 17:
        return Cadence.BI_WEEKLY
    if average_gap_days <= 45:
        return Cadence.MONTHLY
    return Cadence.IRREGULAR


def average_gap_days(starts: list[datetime]) -> float | None:
    """Mean of the positive gaps between sorted starts, in days."""
    ordered = sorted(starts)
    diffs = [
        (b - a).total_seconds() / 86400
        for a, b in zip(ordered, ordered[1:])
        if b > a
    ]
    if not diffs:
        return None
    return sum(diffs) / len(diffs)


# --- Metrics ---------------------------------------------------------------


def _round2(value: float) -> float:
    return round(value, 2)


def _owner_domain(events: list[Event], owner_email: str | None) -> str | None:
    if owner_email:
        return email_domain(owner_email)
    for event in events:
        for attendee in event.attendees:
            if attendee.is_self:
                return email_domain(attendee.email)
    return None


def _acceptance_rate(events: list[Event]) -> float:
    responses = 0
    accepted = 0
    for event in events:
        for attendee in event.attendees:
            if not attendee.email or attendee.response_status is ResponseStatus.NEEDS_ACTION:
                continue
            responses += 1
            if attendee.response_status is ResponseStatus.ACCEPTED:
                accepted += 1
    return accepted / responses if responses else 1.0


def _measurement_window(options: SeriesOptions) -> tuple[datetime, datetime]:
    span = timedelta(days=MEASUREMENT_DAYS)
    if options.range_mode is RangeMode.RETRO:
        return options.now - span, options.now
    return options.now, options.now + span


def _has_end(rule: RecurrenceRule | None, next_occurrence: datetime | None) -> bool:
    """A rule ends with UNTIL or COUNT; without a rule, a series ends when nothing is scheduled."""
    if rule is not None:
        return rule.has_end
    return next_occurrence is None


def _flags(
    metrics: SeriesMetrics,
    rule: RecurrenceRule | None,
    next_occurrence: datetime | None,
    options: SeriesOptions,
) -> list[SeriesFlag]:
    flags = []
    if metrics.attendee_count * metrics.monthly_minutes >= options.people_minutes_threshold:
        flags.append(SeriesFlag.HIGH_PEOPLE_HOURS)
    if metrics.external_attendee_count > 0 and not _has_end(rule, next_occurrence):
        flags.append(SeriesFlag.EXTERNAL_NO_END)
    if metrics.last_updated is not None:
        months = (options.now - metrics.last_updated).days / 30
        if months >= options.stale_months:
            flags.append(SeriesFlag.STALE)
    return flags


def build_series(key: str, events: list[Event], options: SeriesOptions) -> SeriesGroup | None:
    """Compute metrics for one group, or None if nothing falls in the window."""
    ordered = sorted(events, key=lambda e: (e.start, e.id))
    in_window = [
        e
        for e in ordered
        if (options.window_start is None or e.start >= options.window_start)
        and (options.window_end is None or e.start <= options.window_end)
    ]
    if not in_window:
        return None

    durations = [d for d in (e.duration_minutes() for e in in_window) if d and d > 0]
    average_duration = sum(durations) / len(durations) if durations else 0.0

    gap_days = average_gap_days([e.start for e in in_window])
    rule = next((parse_rrule(e.recurrence) for e in ordered if e.has_recurrence), None)
    cadence = cadence_from_rule(rule) or cadence_from_gap(gap_days)

    owner_email = options.owner_email.lower() if options.owner_email else None
    owner_domain = _owner_domain(in_window, owner_email)
    seen: set[str] = set()
    internal = external = 0
    for event in in_window:
        for attendee in event.attendees:
            email = attendee.email
            if not email or is_service_email(email) or email in seen:
                continue
            if attendee.is_self or email == owner_email:
                continue
            seen.add(email)
            if owner_domain and email_domain(email) == owner_domain:
                internal += 1
            else:
                external += 1

    active = [e for e in in_window if not e.is_cancelled]
    attendance = sum(len(e.people()) for e in active) / len(active) if active else 0.0
    cancelled = sum(1 for e in in_window if e.is_cancelled)

    measure_start, measure_end = _measurement_window(options)
    actual_monthly = float(
        sum(
            e.duration_minutes() or 0
            for e in ordered
            if not e.is_cancelled and measure_start <= e.start <= measure_end
        )
    )
    weekly = actual_monthly * 7 / MEASUREMENT_DAYS if actual_monthly > 0 else average_duration
    monthly = actual_monthly if actual_monthly > 0 else average_duration * 4
    attendee_count = internal + external

    updates = [e.updated for e in in_window if e.updated is not None]

    metrics = SeriesMetrics(
        duration_minutes=_round2(average_duration),
        weekly_minutes=_round2(weekly),
        monthly_minutes=_round2(monthly),
        actual_monthly_minutes=_round2(actual_monthly),
        people_hours_per_month=_round2(max(attendee_count, 1) * monthly / 60),
        internal_attendee_count=internal,
        external_attendee_count=external,
        average_attendance=_round2(attendance),
        acceptance_rate=_round2(_acceptance_rate(in_window)),
        cancellation_rate=_round2(cancelled / len(in_window)),
        agenda_missing=all(not e.description.strip() for e in in_window),
        last_updated=max(updates) if updates else None,
        total_instances=len(in_window),
    )

    past = [e.start for e in active if e.start < options.now]
    future = [e.start for e in active if e.start >= options.now]
    next_occurrence = future[0] if future else None

    return SeriesGroup(
        key=key,
        events=in_window,
        title=in_window[0].title or "Untitled meeting",
        organizer_email=in_window[0].organizer_email,
        cadence=cadence,
        average_gap_days=_round2(gap_days) if gap_days else None,
        metrics=metrics,
        flags=_flags(metrics, rule, next_occurrence, options),
        last_occurrence=past[-1] if past else None,
        next_occurrence=next_occurrence,
    )


def resolve_series(events: list[Event], options: SeriesOptions) -> list[SeriesGroup]:
    """
    Group events into recurring series and compute per-series metrics.

    Pure function - no I/O. Output is ordered by monthly minutes (descending)
    then key, so repeated runs give identical results.
    """
    series = []
    for key, members in group_events(events, options.min_heuristic_instances).items():
        group = build_series(key, members, options)
        if group is not None:
            series.append(group)

    return sorted(series, key=lambda s: (-s.metrics.monthly_minutes, s.key))


@dataclass
class SeriesSummary:
    total_series: int
    weekly_hours: float
    monthly_hours: float
    people_hours: float
    percent_of_work_week: float
    internal_series: int
    external_series: int
    placeholder_series: int
    flagged_series: int
    flag_counts: dict[str, int]


def summarize_series(series: list[SeriesGroup], baseline_work_week_hours: float = 40) -> SeriesSummary:
    """Roll series metrics up into totals for the dashboard."""
    internal = external = placeholder = flagged = 0
    flag_counts: dict[str, int] = {}

    for item in series:
        if item.is_placeholder:
            placeholder += 1
        elif item.metrics.external_attendee_count > 0 and item.metrics.internal_attendee_count == 0:
            external += 1
        elif item.metrics.internal_attendee_count > 0:
            internal += 1

        if item.flags:
            flagged += 1
        for flag in item.flags:
            flag_counts[flag.value] = flag_counts.get(flag.value, 0) + 1

    weekly_hours = sum(s.metrics.weekly_minutes for s in series) / 60
    monthly_hours = sum(s.metrics.monthly_minutes for s in series) / 60
    people_hours = sum(s.metrics.people_hours_per_month for s in series)
    percent = weekly_hours / baseline_work_week_hours * 100 if baseline_work_week_hours > 0 else 0.0

    return SeriesSummary(
        total_series=len(series),
        weekly_hours=_round2(weekly_hours),
        monthly_hours=_round2(monthly_hours),
        people_hours=_round2(people_hours),
        percent_of_work_week=_round2(percent),
        internal_series=internal,
        external_series=external,
        placeholder_series=placeholder,
        flagged_series=flagged,
        flag_counts=flag_counts,
    )
