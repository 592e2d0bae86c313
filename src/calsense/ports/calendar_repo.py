"""Calendar repository interface."""

from datetime import datetime
from typing import Protocol

from calsense.core.events import Event


class CalendarRepository(Protocol):
    """Interface for fetching calendar events from any backend."""

    def fetch_range(self, start: datetime, end: datetime) -> list[Event]:
        """Fetch events starting in [start, end)."""
        ...
