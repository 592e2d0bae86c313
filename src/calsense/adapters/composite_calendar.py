"""Composite calendar adapter - combines multiple calendar sources."""

from datetime import datetime

from calsense.config import Config
from calsense.core.events import Event

from .google_calendar import GoogleCalendarAdapter


class CompositeCalendarAdapter:
    """
    Merges every configured Google account into one event list.

    Implements CalendarRepository protocol.
    """

    def __init__(self, config: Config):
        self.config = config
        self._adapters = [
            GoogleCalendarAdapter(
                config_folder=account.config_folder,
                label=account.label,
                calendars=account.calendars or None,
                timezone=config.timezone,
            )
            for account in config.gcal_accounts
        ]

    def fetch_range(self, start: datetime, end: datetime) -> list[Event]:
        """Fetch events from all accounts, de-duplicated by event id, sorted by start."""
        seen: set[str] = set()
        events = []
        for adapter in self._adapters:
            for event in adapter.fetch_range(start, end):
                if event.id and event.id in seen:
                    continue
                seen.add(event.id)
                events.append(event)

        return sorted(events, key=lambda e: (e.start is None, e.start or start))
