"""Functional core - pure scheduling logic with no I/O."""

from .events import Attendee, Event, EventStatus, ResponseStatus, is_meeting
from .errors import InvalidRequestError
from .intervals import Interval, collect_busy_intervals, merge_intervals
from .gaps import GapRecord, GapStatus, analyze_gaps
from .conflicts import Conflict, check_proposed_times, detect_conflicts
from .availability import AvailabilityRequest, SlotSuggestion, find_available_slots, resolve_date_range
from .recurring import SeriesGroup, SeriesOptions, resolve_series, summarize_series
from .relationships import RelationshipSnapshot, RelationshipStatus, track_relationships
from .health import HealthSummary, summarize_health
from .results import ActionPreviewResult, ConflictCheckResult, SlotResult

__all__ = [
    # Events
    "Attendee",
    "Event",
    "EventStatus",
    "ResponseStatus",
    "is_meeting",
    "InvalidRequestError",
    # Intervals
    "Interval",
    "collect_busy_intervals",
    "merge_intervals",
    # Gaps & conflicts
    "GapRecord",
    "GapStatus",
    "analyze_gaps",
    "Conflict",
    "check_proposed_times",
    "detect_conflicts",
    # Availability
    "AvailabilityRequest",
    "SlotSuggestion",
    "find_available_slots",
    "resolve_date_range",
    # Series & relationships
    "SeriesGroup",
    "SeriesOptions",
    "resolve_series",
    "summarize_series",
    "RelationshipSnapshot",
    "RelationshipStatus",
    "track_relationships",
    # Health
    "HealthSummary",
    "summarize_health",
    # Results
    "SlotResult",
    "ConflictCheckResult",
    "ActionPreviewResult",
]
