"""Busy/free interval arithmetic - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo

from .events import Event

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30


@dataclass
class Interval:
    """A half-open [start, end) time range."""

    start: datetime
    end: datetime
    events: list[Event] = field(default_factory=list)

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)


def _localize(dt: datetime, tz: tzinfo | None) -> datetime:
    if tz is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt


def normalize_interval(
    event: Event,
    default_duration: int = DEFAULT_DURATION_MINUTES,
    tz: tzinfo | None = None,
) -> Interval | None:
    """
    Turn an event into a busy interval.

    Returns None for events without a start or end. An end at or before the
    start is replaced by start + default_duration.
    """
    if event.start is None or event.end is None:
        logger.debug(f"Skipping event {event.id!r} without start/end")
        return None

    start = _localize(event.start, tz)
    end = _localize(event.end, tz)
    if end <= start:
        end = start + timedelta(minutes=default_duration)
    return Interval(start=start, end=end, events=[event])


def merge_intervals(intervals: list[Interval]) -> list[Interval]:
    """
    Merge overlapping or touching intervals.

    Pure function - no I/O. Result is sorted and pairwise disjoint.
    """
    if not intervals:
        return []

    ordered = sorted(intervals, key=lambda i: i.start)
    first = ordered[0]
    merged = [Interval(first.start, first.end, list(first.events))]

    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            last.end = max(last.end, current.end)
            last.events.extend(current.events)
        else:
            merged.append(Interval(current.start, current.end, list(current.events)))

    return merged


def is_busy(event: Event, owner_email: str | None = None) -> bool:
    """Cancelled events and invitations the owner declined don't block time."""
    if event.all_day or event.is_cancelled:
        return False
    return not event.declined_by_owner(owner_email)


def collect_busy_intervals(
    events: list[Event],
    window_start: datetime,
    window_end: datetime,
    owner_email: str | None = None,
    default_duration: int = DEFAULT_DURATION_MINUTES,
    tz: tzinfo | None = None,
) -> list[Interval]:
    """
    Merged busy intervals that intersect [window_start, window_end).

    Intervals are not clipped; use clamp_interval for that.
    """
    intervals = []
    for event in events:
        if not is_busy(event, owner_email):
            continue
        interval = normalize_interval(event, default_duration, tz)
        if interval is None:
            continue
        if interval.end > window_start and interval.start < window_end:
            intervals.append(interval)

    return merge_intervals(intervals)


def clamp_interval(interval: Interval, start: datetime, end: datetime) -> Interval | None:
    """Clip an interval to [start, end), or None if nothing is left."""
    clamped_start = max(interval.start, start)
    clamped_end = min(interval.end, end)
    if clamped_start >= clamped_end:
        return None
    return Interval(clamped_start, clamped_end, list(interval.events))
