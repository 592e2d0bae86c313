"""Overlap detection between events - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum

from .events import Event, is_meeting, parse_datetime, timed_events
from .intervals import DEFAULT_DURATION_MINUTES, is_busy, normalize_interval

logger = logging.getLogger(__name__)


@dataclass
class Conflict:
    """Two events that overlap in time."""

    first: Event
    second: Event
    overlap_start: datetime
    overlap_end: datetime
    overlap_minutes: int
    first_is_meeting: bool
    second_is_meeting: bool

    @property
    def is_complete(self) -> bool:
        """The overlap covers the whole of both events."""
        return (
            self.overlap_minutes == self.first.duration_minutes()
            and self.overlap_minutes == self.second.duration_minutes()
        )

    @property
    def both_meetings(self) -> bool:
        return self.first_is_meeting and self.second_is_meeting


def detect_conflicts(events: list[Event], owner_email: str | None = None) -> list[Conflict]:
    """
    Find every overlapping pair of timed events.

    Pure function - no I/O. A pair where neither side is a genuine meeting
    (two placeholders) is never a conflict.
    """
    ordered = [e for e in timed_events(events) if e.end is not None]
    meeting_flags = [is_meeting(e, owner_email) for e in ordered]

    conflicts = []
    for i, first in enumerate(ordered):
        for j in range(i + 1, len(ordered)):
            second = ordered[j]
            if not meeting_flags[i] and not meeting_flags[j]:
                continue
            if first.start < second.end and first.end > second.start:
                overlap_start = max(first.start, second.start)
                overlap_end = min(first.end, second.end)
                conflicts.append(
                    Conflict(
                        first=first,
                        second=second,
                        overlap_start=overlap_start,
                        overlap_end=overlap_end,
                        overlap_minutes=round((overlap_end - overlap_start).total_seconds() / 60),
                        first_is_meeting=meeting_flags[i],
                        second_is_meeting=meeting_flags[j],
                    )
                )

    return conflicts


class ProposalStatus(Enum):
    FREE = "free"
    CONFLICT = "conflict"


@dataclass
class ProposedTime:
    """A candidate time someone suggested, not yet on the calendar."""

    start: str
    end: str | None = None
    duration_minutes: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ProposedTime":
        return cls(
            start=data.get("start", ""),
            end=data.get("end"),
            duration_minutes=data.get("durationMinutes") or data.get("duration_minutes"),
        )


@dataclass
class ProposedTimeCheck:
    proposed: ProposedTime
    status: ProposalStatus
    conflicting_events: list[Event] = field(default_factory=list)


def check_proposed_times(
    events: list[Event],
    proposed: list[ProposedTime],
    default_duration: int = DEFAULT_DURATION_MINUTES,
    owner_email: str | None = None,
    tz: tzinfo = timezone.utc,
) -> list[ProposedTimeCheck]:
    """
    Check each proposed time against the calendar.

    Times without an offset are read in ``tz``. An unreadable proposed start
    counts as a conflict with no events attached.
    """
    intervals = [
        interval
        for interval in (
            normalize_interval(e, default_duration, tz) for e in events if is_busy(e, owner_email)
        )
        if interval is not None
    ]

    checks = []
    for candidate in proposed:
        start = parse_datetime(candidate.start)
        if start is None:
            logger.warning(f"Unreadable proposed start: {candidate.start!r}")
            checks.append(ProposedTimeCheck(candidate, ProposalStatus.CONFLICT))
            continue
        if start.tzinfo is None:
            start = start.replace(tzinfo=tz)

        end = parse_datetime(candidate.end) if candidate.end else None
        if end is None:
            end = start + timedelta(minutes=candidate.duration_minutes or default_duration)
        elif end.tzinfo is None:
            end = end.replace(tzinfo=tz)

        overlapping = [
            interval.events[0]
            for interval in intervals
            if interval.start < end and interval.end > start
        ]
        status = ProposalStatus.CONFLICT if overlapping else ProposalStatus.FREE
        checks.append(ProposedTimeCheck(candidate, status, overlapping))

    return checks
