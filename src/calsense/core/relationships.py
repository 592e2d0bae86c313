"""One-on-one relationship cadence tracking - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .events import Event, is_meeting
from .recurring import average_gap_days

CRITICAL_DAYS = 60
OVERDUE_MULTIPLIER = 2


class RelationshipStatus(Enum):
    CRITICAL = "critical"
    OVERDUE = "overdue"
    HEALTHY = "healthy"

    @property
    def severity(self) -> int:
        return list(RelationshipStatus).index(self)


@dataclass
class RelationshipSnapshot:
    """How often the owner meets one-on-one with one person."""

    email: str
    name: str
    status: RelationshipStatus
    last_meetings: list[Event] = field(default_factory=list)
    next_meetings: list[Event] = field(default_factory=list)
    average_gap_days: float | None = None
    days_since_last: float | None = None
    days_until_next: float | None = None
    is_recurring: bool = False


def relationship_status(
    average_gap: float | None,
    days_since_last: float | None,
    critical_days: int = CRITICAL_DAYS,
) -> RelationshipStatus:
    """
    Classify cadence health.

    Critical with no past meeting or when the last one is too old; overdue
    when the silence is more than twice the usual gap.
    """
    if days_since_last is None or days_since_last > critical_days:
        return RelationshipStatus.CRITICAL
    if average_gap is not None and days_since_last > average_gap * OVERDUE_MULTIPLIER:
        return RelationshipStatus.OVERDUE
    return RelationshipStatus.HEALTHY


def _counterpart(event: Event, owner_email: str | None) -> str | None:
    people = event.people()
    if len(people) != 2:
        return None
    owners = [a for a in people if event.is_owner(a, owner_email)]
    if len(owners) != 1:
        return None
    other = next(a for a in people if a is not owners[0])
    return other.email


def _days(delta_seconds: float) -> float:
    return round(delta_seconds / 86400, 2)


def track_relationships(
    events: list[Event],
    owner_email: str | None,
    now: datetime,
    window: tuple[datetime, datetime] | None = None,
    critical_days: int = CRITICAL_DAYS,
) -> list[RelationshipSnapshot]:
    """
    Snapshot every one-on-one relationship in the event list.

    Pure function - no I/O. Sorted most severe first, then longest silence.
    """
    groups: dict[str, list[Event]] = {}
    for event in events:
        if not event.is_timed or event.is_cancelled:
            continue
        if window is not None and not window[0] <= event.start <= window[1]:
            continue
        if not is_meeting(event, owner_email):
            continue
        counterpart = _counterpart(event, owner_email)
        if counterpart:
            groups.setdefault(counterpart, []).append(event)

    snapshots = []
    for email, group in groups.items():
        ordered = sorted(group, key=lambda e: e.start)
        past = [e for e in ordered if e.start < now]
        future = [e for e in ordered if e.start >= now]

        average_gap = average_gap_days([e.start for e in past]) if len(past) >= 2 else None
        days_since_last = _days((now - past[-1].start).total_seconds()) if past else None
        days_until_next = _days((future[0].start - now).total_seconds()) if future else None

        name = next(
            (a.display_name for e in ordered for a in e.attendees if a.email == email and a.display_name),
            "",
        )

        snapshots.append(
            RelationshipSnapshot(
                email=email,
                name=name,
                status=relationship_status(average_gap, days_since_last, critical_days),
                last_meetings=past[-2:],
                next_meetings=future[:2],
                average_gap_days=round(average_gap, 2) if average_gap else None,
                days_since_last=days_since_last,
                days_until_next=days_until_next,
                is_recurring=any(e.has_recurrence or e.recurring_event_id for e in ordered),
            )
        )

    return sorted(
        snapshots,
        key=lambda s: (s.status.severity, -(s.days_since_last or 0), s.email),
    )
