"""Recommended calendar changes - previews only, nothing is applied here."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from .availability import AvailabilityRequest, SlotSuggestion, find_available_slots
from .events import Event
from .gaps import GapRecord
from .results import ActionPreviewResult
from .timezones import resolve_zone

DEFAULT_BUFFER_MINUTES = 15
DEFAULT_FOCUS_MINUTES = 120


class BufferPosition(Enum):
    BEFORE = "before"
    AFTER = "after"


class FocusPreference(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    ANY = "any"


@dataclass
class ActionPreview:
    """One proposed change to one event."""

    event: Event
    block_start: datetime
    block_end: datetime
    proposed_change: str


def preview_buffers(
    gaps: list[GapRecord],
    position: BufferPosition = BufferPosition.AFTER,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> ActionPreviewResult:
    """
    Propose buffer blocks around meetings with back-to-back or short gaps.

    ``BEFORE`` puts the buffer ahead of the later meeting, ``AFTER`` behind
    the earlier one. Each event appears at most once.
    """
    span = timedelta(minutes=buffer_minutes)
    seen: set[tuple[str, datetime]] = set()
    previews = []

    for gap in gaps:
        if not gap.is_problem:
            continue
        target = gap.after if position is BufferPosition.BEFORE else gap.before
        marker = (target.id, target.start)
        if marker in seen:
            continue
        seen.add(marker)

        if position is BufferPosition.BEFORE:
            block_start, block_end = target.start - span, target.start
            change = f"Add a {buffer_minutes}-minute buffer before start."
        else:
            block_start, block_end = target.end, target.end + span
            change = f"Add a {buffer_minutes}-minute buffer after end."
        previews.append(ActionPreview(target, block_start, block_end, change))

    return ActionPreviewResult(action=f"add_buffers_{position.value}", previews=previews)


def recommend_focus_block(
    events: list[Event],
    request: AvailabilityRequest,
    now: datetime,
    timezone: str = "UTC",
    preference: FocusPreference = FocusPreference.MORNING,
    duration: int = DEFAULT_FOCUS_MINUTES,
) -> SlotSuggestion | None:
    """
    Pick a working-hours slot for deep work.

    The first slot matching the preference wins; otherwise the earliest slot.
    """
    focus_request = replace(request, duration=duration, working_hours_only=True)
    slots = find_available_slots(events, focus_request, now, timezone).slots
    if not slots:
        return None

    tz = resolve_zone(timezone)

    def matches(slot: SlotSuggestion) -> bool:
        hour = slot.start.astimezone(tz).hour
        match preference:
            case FocusPreference.MORNING:
                return hour < 12
            case FocusPreference.AFTERNOON:
                return hour >= 12
        return True

    return next((s for s in slots if matches(s)), slots[0])
