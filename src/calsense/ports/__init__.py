"""Ports - interfaces/protocols for external collaborators."""

from .calendar_repo import CalendarRepository
from .action_executor import ActionExecutor

__all__ = [
    "CalendarRepository",
    "ActionExecutor",
]
