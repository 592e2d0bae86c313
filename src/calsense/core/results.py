"""Tagged result variants handed to the formatting layer."""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .actions import ActionPreview
    from .availability import DateWindow, SlotSuggestion, TimezoneConstraint
    from .conflicts import ProposedTimeCheck


class ResultKind(Enum):
    SLOTS = "slots"
    CONFLICT_CHECK = "conflict_check"
    ACTION_PREVIEW = "action_preview"


@dataclass
class SlotResult:
    """Open slots found by an availability search."""

    window: "DateWindow"
    duration_minutes: int
    working_hours_only: bool
    slots: list["SlotSuggestion"] = field(default_factory=list)
    timezone_constraints: list["TimezoneConstraint"] = field(default_factory=list)
    kind: ResultKind = field(default=ResultKind.SLOTS, init=False)

    @property
    def summary(self) -> str:
        last_day = self.window.end - timedelta(minutes=1)
        span = f"{self.window.start.strftime('%b %d')} - {last_day.strftime('%b %d')}"
        count = len(self.slots)
        if count == 0:
            return f"No open slots found for {self.duration_minutes}-minute meetings ({span})."
        plural = "" if count == 1 else "s"
        return f"Found {count} open slot{plural} for {self.duration_minutes}-minute meetings ({span})."


@dataclass
class ConflictCheckResult:
    """Outcome of checking proposed times against the calendar."""

    checks: list["ProposedTimeCheck"] = field(default_factory=list)
    kind: ResultKind = field(default=ResultKind.CONFLICT_CHECK, init=False)

    @property
    def free_count(self) -> int:
        return sum(1 for c in self.checks if c.status.value == "free")

    @property
    def summary(self) -> str:
        total = len(self.checks)
        plural = "" if total == 1 else "s"
        return f"You are free for {self.free_count} of {total} proposed option{plural}."


@dataclass
class ActionPreviewResult:
    """Changes the engine recommends; applying them is someone else's job."""

    action: str
    previews: list["ActionPreview"] = field(default_factory=list)
    kind: ResultKind = field(default=ResultKind.ACTION_PREVIEW, init=False)

    @property
    def summary(self) -> str:
        count = len(self.previews)
        if count == 0:
            return "Nothing to adjust."
        plural = "" if count == 1 else "s"
        return f"Previewing {count} event{plural} for {self.action.replace('_', ' ')}."
