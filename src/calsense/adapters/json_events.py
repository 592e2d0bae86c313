"""File-based calendar adapter for JSON event exports."""

import json
import logging
from datetime import datetime
from pathlib import Path

from calsense.core.events import Event

logger = logging.getLogger(__name__)


class JsonEventsFile:
    """
    Events read from a Google Calendar JSON export.

    Implements CalendarRepository protocol. Accepts either an API list
    response (``{"items": [...]}``) or a bare list of event resources.
    """

    def __init__(self, path: Path | str, timezone: str = "UTC"):
        self.path = Path(path).expanduser()
        self.timezone = timezone

    def _load_items(self) -> list[dict]:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            logger.warning(f"Events file not found: {self.path}")
            return []
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse events file {self.path}: {e}")
            return []

        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            logger.warning(f"Unexpected events file layout in {self.path}")
            return []
        return [item for item in data if isinstance(item, dict)]

    def fetch_all(self) -> list[Event]:
        """Every event in the file."""
        return [Event.from_api(item, self.timezone) for item in self._load_items()]

    def fetch_range(self, start: datetime, end: datetime) -> list[Event]:
        """Events that overlap [start, end), like the API's timeMin/timeMax filter."""
        return [e for e in self.fetch_all() if _overlaps(e, start, end)]


def _overlaps(event: Event, start: datetime, end: datetime) -> bool:
    if event.start is None:
        return False
    if event.end is None or event.end <= event.start:
        return start <= event.start < end
    return event.start < end and event.end > start
