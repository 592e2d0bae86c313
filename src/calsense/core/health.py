"""Calendar health scoring - no I/O dependencies."""

from dataclasses import dataclass, field

from .conflicts import Conflict, detect_conflicts
from .events import Event, is_meeting, timed_events
from .gaps import GapRecord, GapStatus, analyze_gaps, count_by_status

BACK_TO_BACK_PENALTY = 15
INSUFFICIENT_BUFFER_PENALTY = 8
FOCUS_BLOCK_BONUS = 8
HEAVY_LOAD_HOURS = 6
HEAVY_LOAD_PENALTY = 10
OVERLOAD_HOURS = 8
OVERLOAD_PENALTY = 20


@dataclass
class HealthSummary:
    """Analytics for one calendar view."""

    total_events: int
    total_meetings: int
    meeting_hours: float
    back_to_back_count: int
    insufficient_buffer_count: int
    focus_block_count: int
    score: int
    gaps: list[GapRecord] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def label(self) -> str:
        return interpret_score(self.score)[0]

    @property
    def message(self) -> str:
        return interpret_score(self.score)[1]


def meeting_hours(events: list[Event], owner_email: str | None = None) -> float:
    """Total hours spent in genuine timed meetings."""
    minutes = sum(
        e.duration_minutes() or 0
        for e in timed_events(events)
        if is_meeting(e, owner_email)
    )
    return minutes / 60


def health_score(back_to_back: int, insufficient: int, focus_blocks: int, hours: float) -> int:
    """
    Score 0-100.

    Start at 100, lose points per back-to-back and short buffer, gain points
    per focus block, lose more for heavy meeting days.
    """
    score = 100
    score -= back_to_back * BACK_TO_BACK_PENALTY
    score -= insufficient * INSUFFICIENT_BUFFER_PENALTY
    score += focus_blocks * FOCUS_BLOCK_BONUS
    if hours > HEAVY_LOAD_HOURS:
        score -= HEAVY_LOAD_PENALTY
    if hours > OVERLOAD_HOURS:
        score -= OVERLOAD_PENALTY
    return max(0, min(100, round(score)))


def interpret_score(score: int) -> tuple[str, str]:
    if score >= 80:
        return "Excellent", "Your calendar is well-balanced!"
    if score >= 60:
        return "Good", "Good calendar health with room for improvement"
    if score >= 40:
        return "Fair", "Consider optimizing your schedule"
    return "Poor", "Your calendar needs attention"


def summarize_health(events: list[Event], owner_email: str | None = None) -> HealthSummary:
    """Gap, conflict and load analytics for a view. Pure function - no I/O."""
    if not events:
        return HealthSummary(0, 0, 0.0, 0, 0, 0, score=100)

    timed = timed_events(events)
    gaps = analyze_gaps(timed, owner_email)
    counts = count_by_status(gaps)
    hours = meeting_hours(timed, owner_email)

    return HealthSummary(
        total_events=len(events),
        total_meetings=sum(1 for e in timed if is_meeting(e, owner_email)),
        meeting_hours=round(hours, 2),
        back_to_back_count=counts[GapStatus.BACK_TO_BACK],
        insufficient_buffer_count=counts[GapStatus.INSUFFICIENT_BUFFER],
        focus_block_count=counts[GapStatus.FOCUS_BLOCK],
        score=health_score(
            counts[GapStatus.BACK_TO_BACK],
            counts[GapStatus.INSUFFICIENT_BUFFER],
            counts[GapStatus.FOCUS_BLOCK],
            hours,
        ),
        gaps=gaps,
        conflicts=detect_conflicts(events, owner_email),
    )
