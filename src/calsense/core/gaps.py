"""Gap classification between consecutive events - no I/O dependencies."""

from collections import Counter
from dataclasses import dataclass
from enum import Enum

from .events import Event, is_meeting, timed_events

BUFFER_MINUTES = 10
FOCUS_MIN_MINUTES = 60
FOCUS_MAX_MINUTES = 120


class GapStatus(Enum):
    BACK_TO_BACK = "back-to-back"
    INSUFFICIENT_BUFFER = "insufficient-buffer"
    FOCUS_BLOCK = "focus-block"
    NORMAL = "normal"


RECOMMENDATIONS = {
    GapStatus.BACK_TO_BACK: "Add a buffer to prevent burnout",
    GapStatus.INSUFFICIENT_BUFFER: "Consider extending buffer to 10-15 minutes",
    GapStatus.FOCUS_BLOCK: "Great! Use this for deep work",
    GapStatus.NORMAL: "",
}


@dataclass
class GapRecord:
    """The gap between one event and the next."""

    before: Event
    after: Event
    gap_minutes: int
    status: GapStatus
    is_current_meeting: bool
    is_next_meeting: bool

    @property
    def recommendation(self) -> str:
        return RECOMMENDATIONS[self.status]

    @property
    def is_problem(self) -> bool:
        return self.status in (GapStatus.BACK_TO_BACK, GapStatus.INSUFFICIENT_BUFFER)


def classify_gap(gap_minutes: int, current_is_meeting: bool, next_is_meeting: bool) -> GapStatus:
    """
    Classify a single gap.

    Placeholders on either side are never flagged, whatever the gap.
    """
    if not (current_is_meeting and next_is_meeting):
        return GapStatus.NORMAL
    if gap_minutes == 0:
        return GapStatus.BACK_TO_BACK
    if 0 < gap_minutes < BUFFER_MINUTES:
        return GapStatus.INSUFFICIENT_BUFFER
    if FOCUS_MIN_MINUTES <= gap_minutes <= FOCUS_MAX_MINUTES:
        return GapStatus.FOCUS_BLOCK
    return GapStatus.NORMAL


def analyze_gaps(events: list[Event], owner_email: str | None = None) -> list[GapRecord]:
    """
    Classify the gap following each timed event.

    Pure function - no I/O. All-day events and events without an end are
    left out before pairing.
    """
    ordered = [e for e in timed_events(events) if e.end is not None]

    records = []
    for current, nxt in zip(ordered, ordered[1:]):
        gap_minutes = round((nxt.start - current.end).total_seconds() / 60)
        current_is_meeting = is_meeting(current, owner_email)
        next_is_meeting = is_meeting(nxt, owner_email)
        records.append(
            GapRecord(
                before=current,
                after=nxt,
                gap_minutes=gap_minutes,
                status=classify_gap(gap_minutes, current_is_meeting, next_is_meeting),
                is_current_meeting=current_is_meeting,
                is_next_meeting=next_is_meeting,
            )
        )

    return records


def count_by_status(gaps: list[GapRecord]) -> dict[GapStatus, int]:
    """Number of gaps per status; every status is present."""
    counts = Counter(g.status for g in gaps)
    return {status: counts.get(status, 0) for status in GapStatus}
