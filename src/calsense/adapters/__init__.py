"""Adapters - I/O implementations of ports."""

from .json_events import JsonEventsFile
from .google_calendar import GoogleCalendarAdapter
from .composite_calendar import CompositeCalendarAdapter

__all__ = [
    "JsonEventsFile",
    "GoogleCalendarAdapter",
    "CompositeCalendarAdapter",
]
